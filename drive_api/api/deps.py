from fastapi import Request

from drive_api.core.config import Settings
from drive_api.services.storage_client import StorageClient


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> StorageClient:
    return request.app.state.storage


def get_mailer(request: Request):
    return request.app.state.mailer
