from datetime import datetime
from typing import Optional

from pydantic import model_validator

from drive_api.schemas.base import APIModel
from drive_api.schemas.file_permission import AccessRequestRead, ShareEntryRead
from drive_api.schemas.user import UserSummary


class FileRead(APIModel):
    id: int
    original_name: str
    url: str
    public_id: str
    mime_type: Optional[str]
    size_bytes: int
    resource_type: str
    owner: UserSummary
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FileDetail(FileRead):
    shared_with: list[ShareEntryRead] = []
    access_requests: list[AccessRequestRead] = []

    @classmethod
    def from_file(cls, file, *, include_requests: bool = False) -> "FileDetail":
        base = FileRead.model_validate(file)
        return cls(
            **base.model_dump(),
            shared_with=[ShareEntryRead.model_validate(entry) for entry in file.permissions],
            access_requests=(
                [AccessRequestRead.model_validate(req) for req in file.access_requests]
                if include_requests
                else []
            ),
        )


class SharedFileRead(FileRead):
    permission: str


class FileViewResponse(APIModel):
    access: str
    file: FileDetail


class FileListResponse(APIModel):
    files: list[FileRead]


class SharedFileListResponse(APIModel):
    files: list[SharedFileRead]


class FileMutationResponse(APIModel):
    message: str
    file: FileRead


class RenameFileRequest(APIModel):
    new_name: Optional[str] = None

    @model_validator(mode="after")
    def check_name(self):
        if self.new_name is None or not self.new_name.strip():
            raise ValueError("New name is required")
        self.new_name = self.new_name.strip()
        return self
