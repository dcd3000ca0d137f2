import logging

from sqlalchemy.orm import Session

from drive_api.core.errors import NotFound, ValidationError
from drive_api.models.access_request import AccessRequest
from drive_api.models.file import File as FileModel
from drive_api.models.file_permission import FilePermission
from drive_api.models.user import User
from drive_api.services.permissions import (
    AccessLevel,
    SHARE_PERMISSIONS,
    can_manage_sharing,
    find_share_entry,
    get_file_or_404,
    require,
    resolve_access,
)

logger = logging.getLogger(__name__)


def grant_access(
    *,
    db: Session,
    file_id: int,
    actor: User,
    email: str,
    permission: str,
) -> FilePermission:
    """
    Share a file with the user registered under ``email``.
    Re-granting overwrites the existing entry instead of adding a second one.
    """
    if permission not in SHARE_PERMISSIONS:
        raise ValidationError("Role must be 'view' or 'edit'")

    target = db.query(User).filter(User.email == email.strip().lower()).first()
    if not target:
        raise NotFound("User with this email not found")

    file = get_file_or_404(db, file_id)
    require(can_manage_sharing(file, actor), "Not authorized")

    if target.id == file.owner_id:
        raise ValidationError("Cannot share a file with its owner")

    entry = find_share_entry(file, target.id)
    if entry is not None:
        entry.permission = permission
    else:
        entry = FilePermission(user_id=target.id, permission=permission)
        file.permissions.append(entry)

    # a grant answers any pending request from the same user
    file.access_requests = [r for r in file.access_requests if r.user_id != target.id]

    db.commit()
    db.refresh(entry)
    logger.info("file %s shared with user %s (%s)", file.id, target.id, permission)
    return entry


def revoke_access(*, db: Session, file_id: int, actor: User, user_id: int) -> int:
    """Remove every share entry of ``user_id``. Returns how many were removed."""
    file = get_file_or_404(db, file_id)
    require(can_manage_sharing(file, actor), "Unauthorized")

    kept = [entry for entry in file.permissions if entry.user_id != user_id]
    removed = len(file.permissions) - len(kept)
    file.permissions = kept
    db.commit()

    if removed:
        logger.info("file %s access revoked for user %s", file.id, user_id)
    return removed


def request_access(*, db: Session, file_id: int, user: User) -> AccessRequest:
    file = get_file_or_404(db, file_id)

    if resolve_access(file, user) not in {AccessLevel.NONE, AccessLevel.ADMIN}:
        raise ValidationError("You already have access to this file")

    for existing in file.access_requests:
        if existing.user_id == user.id:
            return existing

    access_request = AccessRequest(user_id=user.id)
    file.access_requests.append(access_request)
    db.commit()
    db.refresh(access_request)
    return access_request
