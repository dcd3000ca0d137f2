import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from drive_api.api.deps import get_app_settings, get_storage
from drive_api.api.routes.auth import get_current_user, require_admin
from drive_api.core.config import Settings
from drive_api.core.errors import InternalError, ValidationError
from drive_api.db.session import get_db
from drive_api.models.file import File as FileModel
from drive_api.models.file_permission import FilePermission
from drive_api.models.user import User
from drive_api.schemas.base import MessageResponse
from drive_api.schemas.file import (
    FileDetail,
    FileListResponse,
    FileMutationResponse,
    FileRead,
    FileViewResponse,
    RenameFileRequest,
    SharedFileListResponse,
    SharedFileRead,
)
from drive_api.schemas.file_permission import RevokeAccessRequest, ShareFileRequest
from drive_api.services.permissions import (
    AccessLevel,
    can_delete,
    can_modify,
    get_file_or_404,
    require,
    resolve_access,
)
from drive_api.services.sharing import grant_access, request_access, revoke_access
from drive_api.services.storage_client import (
    StorageClient,
    StorageError,
    StoredObject,
    resource_type_hint,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["files"])


def _read_upload(file: Optional[UploadFile], max_size_bytes: int) -> bytes:
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")

    data = file.file.read(max_size_bytes + 1)
    if len(data) > max_size_bytes:
        raise ValidationError("File exceeds max upload size")
    return data


def _discard_object(storage: StorageClient, stored: StoredObject) -> None:
    try:
        storage.delete(stored.public_id, stored.resource_type)
    except StorageError:
        logger.warning("orphaned object %s/%s", stored.resource_type, stored.public_id)


@router.post("/upload", response_model=FileMutationResponse, status_code=status.HTTP_201_CREATED)
def upload_file(
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: StorageClient = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
):
    data = _read_upload(file, settings.MAX_UPLOAD_SIZE_BYTES)

    try:
        stored = storage.upload(
            data,
            content_type=file.content_type,
            resource_type=resource_type_hint(file.content_type),
            filename=file.filename,
        )
    except StorageError as e:
        logger.exception("upload of %r failed", file.filename)
        raise InternalError("Upload failed") from e

    db_file = FileModel(
        owner_id=current_user.id,
        original_name=file.filename,
        url=stored.url,
        public_id=stored.public_id,
        mime_type=file.content_type,
        size_bytes=len(data),
        resource_type=stored.resource_type,
    )
    db.add(db_file)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("could not save upload %r, discarding new object", file.filename)
        _discard_object(storage, stored)
        raise InternalError("Upload failed") from e
    db.refresh(db_file)

    return FileMutationResponse(
        message="File uploaded successfully",
        file=FileRead.model_validate(db_file),
    )


@router.get("/my-files", response_model=FileListResponse)
def my_files(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    files = (
        db.query(FileModel)
        .filter(FileModel.owner_id == current_user.id)
        .order_by(FileModel.created_at.desc(), FileModel.id.desc())
        .all()
    )
    return FileListResponse(files=[FileRead.model_validate(f) for f in files])


@router.get("/shared-with-me", response_model=SharedFileListResponse)
def shared_with_me(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = (
        db.query(FileModel, FilePermission.permission)
        .join(FilePermission, FilePermission.file_id == FileModel.id)
        .filter(FilePermission.user_id == current_user.id)
        .order_by(FileModel.created_at.desc(), FileModel.id.desc())
        .all()
    )
    files = [
        SharedFileRead(**FileRead.model_validate(f).model_dump(), permission=permission)
        for f, permission in rows
    ]
    return SharedFileListResponse(files=files)


@router.get(
    "/showfile/{file_id}",
    response_model=FileViewResponse,
    responses={403: {"description": "No access"}},
)
def show_file(
    file_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    file = get_file_or_404(db, file_id)

    access = resolve_access(file, current_user)
    if access is AccessLevel.NONE:
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"access": AccessLevel.NONE.value, "message": "No access"},
        )

    detail = FileDetail.from_file(file, include_requests=access is AccessLevel.OWNER)
    return FileViewResponse(access=access.value, file=detail)


@router.patch("/rename/{file_id}", response_model=FileMutationResponse)
def rename_file(
    file_id: int,
    payload: RenameFileRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    file = get_file_or_404(db, file_id)
    require(can_modify(file, current_user), "You do not have permission to rename this file")

    # the stored object keeps its id
    file.original_name = payload.new_name
    db.commit()
    db.refresh(file)

    return FileMutationResponse(message="File renamed", file=FileRead.model_validate(file))


@router.put("/update-content/{file_id}", response_model=FileMutationResponse)
def update_file_content(
    file_id: int,
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: StorageClient = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
):
    data = _read_upload(file, settings.MAX_UPLOAD_SIZE_BYTES)

    db_file = get_file_or_404(db, file_id)
    require(can_modify(db_file, current_user), "You do not have permission to update this file")

    # 1. Stage the new object; on failure nothing has changed yet
    try:
        stored = storage.upload(
            data,
            content_type=file.content_type,
            resource_type=resource_type_hint(file.content_type),
            filename=file.filename,
        )
    except StorageError as e:
        logger.exception("content update of file %s failed", db_file.id)
        raise InternalError("Update failed") from e

    old_public_id, old_resource_type = db_file.public_id, db_file.resource_type

    # 2. Point the record at the new object
    db_file.url = stored.url
    db_file.public_id = stored.public_id
    db_file.resource_type = stored.resource_type
    db_file.size_bytes = len(data)
    db_file.mime_type = file.content_type
    db_file.original_name = file.filename
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("could not save file %s, discarding new object", db_file.id)
        _discard_object(storage, stored)
        raise InternalError("Update failed") from e

    # 3. Drop the old object, best effort
    try:
        storage.delete(old_public_id, old_resource_type)
    except StorageError:
        logger.warning("orphaned object %s/%s", old_resource_type, old_public_id)

    db.refresh(db_file)
    return FileMutationResponse(
        message="File updated successfully",
        file=FileRead.model_validate(db_file),
    )


@router.delete("/delete/{file_id}", response_model=MessageResponse)
def delete_file(
    file_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: StorageClient = Depends(get_storage),
):
    file = get_file_or_404(db, file_id)
    require(can_delete(file, current_user), "You do not have permission to delete this file")

    try:
        storage.delete(file.public_id, file.resource_type)
    except StorageError as e:
        logger.exception("could not delete object for file %s", file.id)
        raise InternalError("Delete failed") from e

    db.delete(file)
    db.commit()

    logger.info("file %s deleted by user %s", file_id, current_user.id)
    return MessageResponse(message="File deleted successfully")


@router.post("/share/{file_id}", response_model=MessageResponse)
def share_file(
    file_id: int,
    payload: ShareFileRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    grant_access(
        db=db,
        file_id=file_id,
        actor=current_user,
        email=payload.email,
        permission=payload.role,
    )
    return MessageResponse(message=f"Access granted to {payload.email}")


@router.delete("/revoke/{file_id}", response_model=MessageResponse)
def revoke_file_access(
    file_id: int,
    payload: RevokeAccessRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    revoke_access(db=db, file_id=file_id, actor=current_user, user_id=payload.user_id)
    return MessageResponse(message="Access revoked successfully")


@router.post("/request-access/{file_id}", response_model=MessageResponse)
def request_file_access(
    file_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    request_access(db=db, file_id=file_id, user=current_user)
    return MessageResponse(message="Access requested")


@router.get("/admin/all-files", response_model=FileListResponse)
def all_files_admin(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    files = (
        db.query(FileModel)
        .order_by(FileModel.created_at.desc(), FileModel.id.desc())
        .all()
    )
    return FileListResponse(files=[FileRead.model_validate(f) for f in files])
