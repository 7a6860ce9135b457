from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    APP_NAME: str = "Equipment Ops"

    # REQUIRED in .env
    SESSION_SECRET: str
    SESSION_ALG: str = "HS256"
    SESSION_EXPIRE_MINUTES: int = 60 * 24 * 7  # 1 week
    SESSION_COOKIE_NAME: str = "equipment_session"
    SESSION_COOKIE_SECURE: bool = False  # set True behind HTTPS

    MAGIC_LINK_EXPIRE_MINUTES: int = 15

    DATABASE_URL: str = "sqlite:///./equipment.db"

    # Object storage
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_MB: int = 8
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # Magic link delivery. Without SMTP_HOST links are only logged.
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM: str = "equipment-ops@localhost"

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

    @field_validator("SESSION_SECRET")
    @classmethod
    def validate_secret(cls, v: str) -> str:
        if not v or len(v.strip()) < 32:
            raise ValueError("SESSION_SECRET must be set and at least 32 characters.")
        if "CHANGE_ME" in v.upper():
            raise ValueError("SESSION_SECRET looks like a placeholder. Set a real secret.")
        return v.strip()

    @field_validator("PUBLIC_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


settings = Settings()
