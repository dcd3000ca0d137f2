import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """The object store could not be reached or refused the request."""


@dataclass(frozen=True)
class StoredObject:
    url: str
    public_id: str
    resource_type: str
    size_bytes: int


def resource_type_hint(mime_type: str | None) -> str:
    # PDFs are forced to raw; everything else lets the store decide
    if mime_type == "application/pdf":
        return "raw"
    return "auto"


class StorageClient:
    """
    Thin client for the object store service.

    The HTTP client is passed in so the application factory (or a test)
    decides where requests go.
    """

    def __init__(self, http: httpx.Client, folder: str = "minidrive"):
        self.http = http
        self.folder = folder

    def upload(
        self,
        data: bytes,
        *,
        content_type: str | None,
        resource_type: str = "auto",
        filename: str | None = None,
    ) -> StoredObject:
        params = {"resource_type": resource_type, "folder": self.folder}
        if filename:
            params["filename"] = filename

        try:
            resp = self.http.post(
                "/objects/upload",
                params=params,
                content=data,
                headers={"Content-Type": content_type or "application/octet-stream"},
            )
        except httpx.RequestError as e:
            raise StorageError(f"Failed to reach object store: {e}") from e

        if resp.status_code not in (200, 201):
            raise StorageError(f"Object store returned {resp.status_code}: {resp.text}")

        body = resp.json()
        return StoredObject(
            url=body["secure_url"],
            public_id=body["public_id"],
            resource_type=body["resource_type"],
            size_bytes=body["bytes"],
        )

    def delete(self, public_id: str, resource_type: str) -> bool:
        """
        Remove an object. Returns False when the store had no such object,
        which callers treat as already deleted.
        """
        try:
            resp = self.http.delete(f"/objects/{resource_type}/{public_id}")
        except httpx.RequestError as e:
            raise StorageError(f"Failed to reach object store: {e}") from e

        if resp.status_code != 200:
            raise StorageError(f"Object store returned {resp.status_code}: {resp.text}")

        result = resp.json().get("result")
        if result != "ok":
            logger.warning("object %s/%s was not found in the store", resource_type, public_id)
            return False
        return True

    def close(self) -> None:
        self.http.close()
