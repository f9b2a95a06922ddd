from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional
import os

class Settings(BaseSettings):
    # Company tokens are issued here; candidate tokens come from the identity provider
    jwt_secret: str = "change-me"
    company_token_days: int = 30
    candidate_jwt_secret: str = ""
    candidate_jwks_url: str = ""

    # Database - Railway provides DATABASE_URL, fallback to SQLite for local
    database_url: Optional[str] = None

    # Redis (password reset codes); in-process store when unset
    redis_url: str = ""

    # Email delivery
    email_from: str = "no-reply@skill-bridge.app"
    email_api_url: str = ""  # HTTP mail API, takes precedence over SMTP
    email_api_key: str = ""
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    email_timeout_seconds: float = 5.0

    # Password reset
    otp_ttl_seconds: int = 600
    otp_max_attempts: int = 3

    # App Settings
    app_name: str = "Skill-Bridge"
    app_version: str = "1.0.0"
    brand_name: str = "Skill-Bridge"
    debug: bool = False
    allowed_origins: str = "http://localhost:5173"
    rate_limit_enabled: bool = True

    # API Settings
    backend_host: str = "0.0.0.0"
    backend_port: int = int(os.getenv("PORT", "5000"))

    class Config:
        env_file = ".env"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.database_url is None:
            self.database_url = "sqlite+aiosqlite:///./database/jobboard.db"
        # Hosted Postgres hands out postgres:// URLs, async SQLAlchemy needs the asyncpg driver
        if self.database_url.startswith("postgres://"):
            self.database_url = self.database_url.replace("postgres://", "postgresql+asyncpg://", 1)
        elif self.database_url.startswith("postgresql://"):
            self.database_url = self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

@lru_cache()
def get_settings() -> Settings:
    return Settings()
