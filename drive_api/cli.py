import argparse
import getpass
import sys
from typing import Optional

from sqlalchemy.orm import Session

from drive_api.core.config import get_settings
from drive_api.core.security import hash_password
from drive_api.db.base import Base
from drive_api.db.session import build_engine, build_session_factory
import drive_api.models  # noqa: F401
from drive_api.models.user import User


def create_admin(
    db: Session,
    email: str,
    username: Optional[str] = None,
    password: Optional[str] = None,
) -> tuple[User, bool]:
    """
    Promote the account registered under ``email`` to admin, or create it.
    Returns (user, created).
    """
    email = email.strip().lower()
    user = db.query(User).filter(User.email == email).first()

    if user:
        user.role = "admin"
        db.commit()
        return user, False

    if not username or not password:
        raise ValueError("username and password are required to create a new admin")

    taken = db.query(User).filter(User.username == username).first()
    if taken:
        raise ValueError(f"username {username!r} is already taken")

    user = User(
        email=email,
        username=username,
        hashed_password=hash_password(password),
        role="admin",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user, True


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Create or promote a MiniDrive admin account.")
    parser.add_argument(
        "--email",
        required=True,
        help="Email of the account to promote or create.",
    )
    parser.add_argument(
        "--username",
        default=None,
        help="Username for a new account (ignored when the email already exists).",
    )
    parser.add_argument(
        "--password",
        default=None,
        help="Password for a new account. Prompted for when omitted.",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Database URL (default: DATABASE_URL from the environment / .env).",
    )

    args = parser.parse_args(argv)

    engine = build_engine(args.database_url or get_settings().DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    db = build_session_factory(engine)()

    try:
        password = args.password
        exists = db.query(User).filter(User.email == args.email.strip().lower()).first()
        if not exists and password is None and args.username:
            password = getpass.getpass("Password: ")

        user, created = create_admin(db, args.email, args.username, password)
        verb = "Created" if created else "Promoted"
        print(f"[OK] {verb} admin '{user.username}' <{user.email}>")
    except ValueError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    finally:
        db.close()
        engine.dispose()

    return 0


if __name__ == "__main__":
    sys.exit(main())
