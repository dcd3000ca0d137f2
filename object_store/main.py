import logging
import mimetypes
import os
import re
import uuid
from pathlib import Path, PurePosixPath
from typing import Optional

import aiofiles
import aiofiles.os
from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.responses import FileResponse

logger = logging.getLogger(__name__)

RESOURCE_TYPES = {"image", "video", "raw"}

_SEGMENT = re.compile(r"^[A-Za-z0-9_\-][A-Za-z0-9_\-\.]*$")


def resolve_resource_type(requested: str, content_type: str | None) -> str:
    """
    Pick the kind an object is filed under. ``auto`` looks at the
    content type: images -> image, video and audio -> video, else raw.
    """
    if requested != "auto":
        return requested
    major = (content_type or "").split("/", 1)[0].lower()
    if major == "image":
        return "image"
    if major in ("video", "audio"):
        return "video"
    return "raw"


def _check_public_id(public_id: str) -> PurePosixPath:
    parts = PurePosixPath(public_id).parts
    if not parts or any(p in (".", "..") or not _SEGMENT.match(p) for p in parts):
        raise HTTPException(status_code=400, detail="Invalid public id")
    return PurePosixPath(*parts)


def _check_resource_type(resource_type: str) -> str:
    if resource_type not in RESOURCE_TYPES:
        raise HTTPException(status_code=400, detail="Invalid resource type")
    return resource_type


def create_app(root_dir: str | Path) -> FastAPI:
    root = Path(root_dir)
    app = FastAPI(title="Object Store")

    def object_path(resource_type: str, public_id: str) -> Path:
        return root / _check_resource_type(resource_type) / _check_public_id(public_id)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post("/objects/upload", status_code=status.HTTP_201_CREATED)
    async def upload_object(
        request: Request,
        resource_type: str = Query("auto"),
        folder: str = Query("uploads"),
        filename: Optional[str] = Query(None),
    ):
        """
        Store the raw request body as a new object.
        """
        if resource_type != "auto":
            _check_resource_type(resource_type)
        _check_public_id(folder)

        kind = resolve_resource_type(resource_type, request.headers.get("content-type"))
        suffix = PurePosixPath(filename or "").suffix.lower()
        if suffix and not _SEGMENT.match(suffix.lstrip(".")):
            suffix = ""
        public_id = f"{folder}/{uuid.uuid4().hex}{suffix}"

        dest = object_path(kind, public_id)
        dest.parent.mkdir(parents=True, exist_ok=True)

        size = 0
        async with aiofiles.open(dest, "wb") as f:
            async for chunk in request.stream():
                size += len(chunk)
                await f.write(chunk)

        secure_url = f"{str(request.base_url).rstrip('/')}/objects/{kind}/{public_id}"
        logger.info("stored %s/%s (%d bytes)", kind, public_id, size)
        return {
            "public_id": public_id,
            "resource_type": kind,
            "secure_url": secure_url,
            "bytes": size,
        }

    @app.get("/objects/{resource_type}/{public_id:path}")
    async def get_object(resource_type: str, public_id: str):
        """
        Stream a stored object back.
        """
        path = object_path(resource_type, public_id)
        if not path.is_file():
            raise HTTPException(status_code=404, detail="Object not found")

        # Guess MIME type from file extension (pdf, docx, jpg, png, mp4, etc.)
        mime_type, _ = mimetypes.guess_type(str(path))
        media_type = mime_type or "application/octet-stream"

        return FileResponse(path, media_type=media_type)

    @app.delete("/objects/{resource_type}/{public_id:path}")
    async def delete_object(resource_type: str, public_id: str):
        path = object_path(resource_type, public_id)
        if not path.is_file():
            return {"result": "not found"}

        await aiofiles.os.remove(path)
        logger.info("deleted %s/%s", resource_type, public_id)
        return {"result": "ok"}

    return app


app = create_app(os.getenv("OBJECT_DIR", "/data/objects"))
