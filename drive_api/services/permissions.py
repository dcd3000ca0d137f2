import enum

from sqlalchemy.orm import Session

from drive_api.core.errors import Forbidden, NotFound
from drive_api.models.file import File as FileModel
from drive_api.models.file_permission import FilePermission
from drive_api.models.user import User


class AccessLevel(str, enum.Enum):
    OWNER = "owner"
    EDIT = "edit"
    VIEW = "view"
    ADMIN = "admin"
    NONE = "none"


SHARE_PERMISSIONS = {"view", "edit"}

# largest value a 64-bit INTEGER column can hold
MAX_FILE_ID = 2**63 - 1


def find_share_entry(file: FileModel, user_id: int) -> FilePermission | None:
    for entry in file.permissions:
        if entry.user_id == user_id:
            return entry
    return None


def resolve_access(file: FileModel, user: User) -> AccessLevel:
    """
    Resolve what ``user`` may do with ``file``, first match wins:
      1. the owner           -> OWNER
      2. an explicit grant   -> that grant's permission (VIEW / EDIT)
      3. an admin account    -> ADMIN
      4. anyone else         -> NONE
    An explicit grant shadows the admin fallback.
    """
    if file.owner_id == user.id:
        return AccessLevel.OWNER

    entry = find_share_entry(file, user.id)
    if entry is not None:
        return AccessLevel(entry.permission)

    if user.role == "admin":
        return AccessLevel.ADMIN

    return AccessLevel.NONE


def can_delete(file: FileModel, user: User) -> bool:
    return resolve_access(file, user) in {AccessLevel.OWNER, AccessLevel.EDIT} or user.role == "admin"


def can_modify(file: FileModel, user: User) -> bool:
    # rename / replace content; admin role alone does not qualify
    return resolve_access(file, user) in {AccessLevel.OWNER, AccessLevel.EDIT}


def can_manage_sharing(file: FileModel, user: User) -> bool:
    return file.owner_id == user.id


def get_file_or_404(db: Session, file_id: int) -> FileModel:
    if not 1 <= file_id <= MAX_FILE_ID:
        raise NotFound("File not found")
    file = db.query(FileModel).filter(FileModel.id == file_id).first()
    if not file:
        raise NotFound("File not found")
    return file


def require(allowed: bool, detail: str) -> None:
    if not allowed:
        raise Forbidden(detail)
