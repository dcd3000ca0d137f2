import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from drive_api.api.routes import auth, file
from drive_api.core.config import Settings, get_settings
from drive_api.db.base import Base
from drive_api.db.session import build_engine, build_session_factory
import drive_api.models  # noqa: F401  # import models so metadata is populated
from drive_api.services.mailer import build_mailer
from drive_api.services.storage_client import StorageClient

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    missing = [
        str(error["loc"][-1])
        for error in errors
        if error.get("type") == "missing"
    ]
    if missing:
        return f"Missing fields: {', '.join(missing)}"

    message = str(errors[0].get("msg") or "Invalid request")
    return message.removeprefix("Value error, ")


def create_app(
    settings: Settings | None = None,
    *,
    storage: StorageClient | None = None,
    mailer=None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL.upper())

    engine = build_engine(settings.DATABASE_URL)
    owns_storage = storage is None
    if storage is None:
        storage = StorageClient(
            httpx.Client(
                base_url=settings.OBJECT_STORE_URL,
                timeout=settings.STORAGE_TIMEOUT_SECONDS,
            ),
            folder=settings.STORAGE_FOLDER,
        )

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        Base.metadata.create_all(bind=engine)
        yield
        if owns_storage:
            storage.close()
        engine.dispose()

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.storage = storage
    app.state.mailer = mailer if mailer is not None else build_mailer(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_: Request, exc: StarletteHTTPException):
        message = str(exc.detail) if exc.detail else "Request failed"
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(_: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": _validation_message(exc)})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "Server error"})

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "service": settings.PROJECT_NAME}

    # include routers
    app.include_router(auth.router)
    app.include_router(file.router)

    return app

