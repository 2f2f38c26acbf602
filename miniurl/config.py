import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Explicitly load .env from project root (parent of miniurl/)
ENV_PATH = Path(__file__).parent.parent / ".env"

DEFAULT_CORS_ORIGINS = ("http://localhost:5173", "http://127.0.0.1:5173")


@dataclass(frozen=True)
class Settings:
    jwt_secret: str
    database_url: str
    environment: str = "dev"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    base_url: str | None = None
    frontend_base_url: str = "http://localhost:5173"
    cors_allowed_origins: tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)
    log_level: str = "INFO"


def _split_origins(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_CORS_ORIGINS
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


def load_settings() -> Settings:
    load_dotenv(ENV_PATH)
    environment = os.getenv("ENVIRONMENT", "dev")

    jwt_secret = os.getenv("JWT_SECRET")
    if not jwt_secret:
        raise RuntimeError("JWT_SECRET is not set")

    # Dev: SQLite (zero config), Prod: PostgreSQL
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        if environment == "prod":
            raise RuntimeError("DATABASE_URL must be set in production")
        database_url = f"sqlite:///{Path(__file__).parent.parent / 'miniurl_dev.db'}"

    return Settings(
        jwt_secret=jwt_secret,
        database_url=database_url,
        environment=environment,
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60)),
        base_url=(os.getenv("BASE_URL") or "").rstrip("/") or None,
        frontend_base_url=os.getenv("FRONTEND_BASE_URL", "http://localhost:5173").rstrip("/"),
        cors_allowed_origins=_split_origins(os.getenv("CORS_ALLOWED_ORIGINS")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
