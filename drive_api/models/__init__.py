from drive_api.db.base import Base
from drive_api.models.user import User
from drive_api.models.file import File
from drive_api.models.file_permission import FilePermission
from drive_api.models.access_request import AccessRequest
