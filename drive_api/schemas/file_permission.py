from datetime import datetime
from typing import Literal, Optional

from drive_api.schemas.base import APIModel
from drive_api.schemas.user import UserSummary


class ShareFileRequest(APIModel):
    email: str
    role: Literal["view", "edit"] = "view"


class RevokeAccessRequest(APIModel):
    user_id: int


class ShareEntryRead(APIModel):
    user: UserSummary
    permission: str


class AccessRequestRead(APIModel):
    user: UserSummary
    requested_at: Optional[datetime] = None
