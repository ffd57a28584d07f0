"""Application settings loaded from .env file."""
import secrets
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: str = "http://localhost:3000"

    # Auth (single hardcoded admin account)
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "admin123"
    SESSION_SECRET: str = Field(default_factory=lambda: secrets.token_hex(32))
    SESSION_COOKIE_NAME: str = "admin_session"
    SESSION_MAX_AGE_SECONDS: int = 24 * 60 * 60
    SESSION_COOKIE_SECURE: bool = False

    # Route gate
    PROTECTED_PATH_PREFIXES: str = "/dashboard"
    LOGIN_PATH: str = "/login"
    DASHBOARD_PATH: str = "/dashboard"

    # Introspection
    INTROSPECTION_BACKEND: Literal["prisma", "sqlalchemy"] = "prisma"
    PRISMA_COMMAND: str = "npx prisma"
    INTROSPECTION_TIMEOUT_SECONDS: Optional[float] = None

    # Connections
    MAX_CACHED_CONNECTIONS: int = 16
    ALLOW_RAW_QUERIES: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def protected_prefix_list(self) -> list[str]:
        return [p.strip() for p in self.PROTECTED_PATH_PREFIXES.split(",") if p.strip()]


settings = Settings()
