from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "MiniDrive"
    DATABASE_URL: str = "sqlite:///./minidrive.db"

    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 7 * 24 * 60
    RESET_TOKEN_EXPIRE_MINUTES: int = 15

    OBJECT_STORE_URL: str = "http://localhost:9001"
    STORAGE_FOLDER: str = "minidrive"
    STORAGE_TIMEOUT_SECONDS: float = 30.0
    MAX_UPLOAD_SIZE_BYTES: int = 50 * 1024 * 1024

    FRONTEND_URL: str = "http://localhost:5173"
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    # SMTP is optional; without a host, outgoing mail is only logged
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_USE_TLS: bool = True
    MAIL_FROM: str = "MiniDrive Support <no-reply@minidrive.local>"

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
