"""Environment-based configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from sqlalchemy.engine import URL


def resolve_database_url() -> str:
    """Resolve DB connection string.

    Priority:
      1) DATABASE_URL (explicit)
      2) Build from PG* env vars (common Postgres convention)
      3) Fallback to local sqlite
    """

    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit

    host = os.getenv("PGHOST")
    user = os.getenv("PGUSER")
    database = os.getenv("PGDATABASE")
    port_raw = os.getenv("PGPORT")

    if host and user and database:
        try:
            port = int(port_raw) if port_raw else 5432
        except ValueError:
            port = 5432

        sslmode = os.getenv("PGSSLMODE", "require")
        url = URL.create(
            drivername="postgresql+psycopg2",
            username=user,
            password=os.getenv("PGPASSWORD"),
            host=host,
            port=port,
            database=database,
            query={"sslmode": sslmode} if sslmode else {},
        )
        return url.render_as_string(hide_password=False)

    return "sqlite:///./lucky_draw.db"


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class BaseConfig:
    """Base configuration shared by all environments."""

    APP_ENV: str = os.getenv("APP_ENV", "development")
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret")
    TESTING: bool = False

    DATABASE_URL: str = resolve_database_url()
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Object storage: "local" | "s3"
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "local").lower().strip()
    UPLOAD_FOLDER: str = os.getenv("UPLOAD_FOLDER", os.path.abspath("./uploads"))
    S3_BUCKET: str = os.getenv("S3_BUCKET", "")
    AWS_REGION: str = os.getenv("AWS_REGION", "ap-northeast-2")
    STORAGE_PUBLIC_BASE_URL: str = os.getenv("STORAGE_PUBLIC_BASE_URL", "")
    MAX_CONTENT_LENGTH: int = _int_env("MAX_CONTENT_LENGTH", 20 * 1024 * 1024)

    # Used to build shareable invite links; falls back to the request host.
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "")
    EVENT_TIMEZONE: str = os.getenv("EVENT_TIMEZONE", "Asia/Seoul")

    SSE_KEEPALIVE_SECONDS: int = _int_env("SSE_KEEPALIVE_SECONDS", 15)
    REALTIME_QUEUE_SIZE: int = _int_env("REALTIME_QUEUE_SIZE", 256)


@dataclass(frozen=True)
class DevelopmentConfig(BaseConfig):
    """Development configuration."""

    DEBUG: bool = True


@dataclass(frozen=True)
class ProductionConfig(BaseConfig):
    """Production configuration."""

    DEBUG: bool = False
    SESSION_COOKIE_SECURE: bool = True


@dataclass(frozen=True)
class TestingConfig(BaseConfig):
    """Testing configuration (sqlite file supplied by the test fixture)."""

    DEBUG: bool = False
    TESTING: bool = True
    DATABASE_URL: str = "sqlite://"
    SSE_KEEPALIVE_SECONDS: int = 1


def get_config() -> type[BaseConfig]:
    """Resolve configuration class based on APP_ENV."""

    env = os.getenv("APP_ENV", "development").lower().strip()
    if env == "production":
        return ProductionConfig
    if env == "testing":
        return TestingConfig
    return DevelopmentConfig
