import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, Security, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from drive_api.api.deps import get_app_settings, get_mailer
from drive_api.core.config import Settings
from drive_api.core.errors import Conflict, Forbidden, InternalError, Unauthenticated, ValidationError
from drive_api.core.security import (
    create_access_token,
    decode_access_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    utcnow,
    verify_password,
)
from drive_api.db.session import get_db
from drive_api.models.user import User
from drive_api.schemas.base import MessageResponse
from drive_api.schemas.user import (
    AuthResponse,
    ForgotPasswordRequest,
    MeResponse,
    ResetPasswordRequest,
    UserCreate,
    UserLogin,
    UserRead,
)
from drive_api.services.mailer import MailError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def _auth_response(user: User, message: str, settings: Settings) -> AuthResponse:
    token = create_access_token(subject=user.id, role=user.role, settings=settings)
    return AuthResponse(message=message, token=token, user=UserRead.model_validate(user))


def _check_not_taken(db: Session, email: str, username: str) -> None:
    existing = (
        db.query(User)
        .filter((User.email == email) | (User.username == username))
        .first()
    )
    if existing:
        if existing.email == email:
            raise Conflict("Email is already registered")
        raise Conflict("Username is already taken")


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(
    payload: UserCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    email = payload.email.lower()
    _check_not_taken(db, email, payload.username)

    user = User(
        username=payload.username,
        email=email,
        hashed_password=hash_password(payload.password),
        role="member",
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # another signup claimed the email or username after the check
        db.rollback()
        _check_not_taken(db, email, payload.username)
        raise
    db.refresh(user)

    logger.info("user %s signed up", user.id)
    return _auth_response(user, "Signup successful", settings)


@router.post("/login", response_model=AuthResponse)
def login(
    payload: UserLogin,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    user = db.query(User).filter(User.email == payload.email.strip().lower()).first()

    # same message and a hash check on both branches
    hashed = user.hashed_password if user else None
    if not verify_password(payload.password, hashed):
        raise Unauthenticated("Invalid email or password")

    return _auth_response(user, "Login successful", settings)


@router.post("/logout", response_model=MessageResponse)
def logout():
    # tokens are stateless; the client drops its copy
    return MessageResponse(message="Logged out successfully")


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    mailer=Depends(get_mailer),
):
    reply = MessageResponse(message="If that email is registered, a reset link has been sent")

    user = db.query(User).filter(User.email == payload.email.strip().lower()).first()
    if not user:
        return reply

    token, token_hash = generate_reset_token()
    user.reset_token_hash = token_hash
    user.reset_token_expires_at = utcnow() + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    db.commit()

    reset_url = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password/{token}"
    html = (
        "<p>You requested a password reset for your MiniDrive account.</p>"
        f'<p><a href="{reset_url}">Reset your password</a></p>'
        f"<p>This link expires in {settings.RESET_TOKEN_EXPIRE_MINUTES} minutes.</p>"
    )

    try:
        mailer.send(user.email, "MiniDrive password reset", html)
    except MailError as e:
        user.reset_token_hash = None
        user.reset_token_expires_at = None
        db.commit()
        raise InternalError("Email could not be sent") from e

    return reply


@router.post("/reset-password/{token}", response_model=MessageResponse)
def reset_password(
    token: str,
    payload: ResetPasswordRequest,
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(User.reset_token_hash == hash_reset_token(token)).first()

    if (
        not user
        or user.reset_token_expires_at is None
        or user.reset_token_expires_at < utcnow()
    ):
        raise ValidationError("Invalid or expired token")

    user.hashed_password = hash_password(payload.password)
    user.reset_token_hash = None
    user.reset_token_expires_at = None
    db.commit()

    logger.info("user %s reset their password", user.id)
    return MessageResponse(message="Password reset successful")


# dependency to get current user
def get_current_user(
    token: str = Security(oauth2_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> User:
    try:
        payload = decode_access_token(token, settings)
        sub = payload.get("sub")
        if sub is None:
            raise Unauthenticated("Invalid or expired token")
        user_id = int(sub)
    except (JWTError, ValueError):
        raise Unauthenticated("Invalid or expired token")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise Unauthenticated("User not found")
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != "admin":
        raise Forbidden("Access denied. Admins only.")
    return current_user


@router.get("/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user)):
    return MeResponse(user=UserRead.model_validate(current_user))
