"""Application configuration management."""
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import ArgumentError
import logging

SQLITE_LOCAL_URL = "sqlite+aiosqlite:///./retreat_store.db"
DEFAULT_SECRET_KEY = "dev-secret-key-change-in-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = SQLITE_LOCAL_URL
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Application
    environment: str = "development"
    frontend_url: str = "http://localhost:3000"
    secret_key: str = DEFAULT_SECRET_KEY
    session_cookie_name: str = "retreat_session"
    session_max_age_seconds: int = 24 * 60 * 60  # One day, matches the retreat schedule

    # Logging
    log_dir: str = "logs"
    log_level: str = "INFO"

    # Bootstrap data
    admin_username: str = "admin"
    admin_password: str = "admin123"
    seed_teams: str = "A그룹,B그룹,C그룹,D그룹,E그룹,Z그룹"  # Comma-separated
    seed_sample_products: bool = True

    # Money codes
    money_code_prefix: str = "RC"
    money_code_max_batch: int = 500

    # Accounts
    min_password_length: int = 6

    @property
    def seed_team_names(self) -> list[str]:
        """Team names to create on first start."""
        return [item.strip() for item in self.seed_teams.split(",") if item.strip()]

    @model_validator(mode="after")
    def validate_all_config(self):
        """Validate security configuration and normalize Postgres URLs."""
        logger = logging.getLogger(__name__)

        if self.environment == "production" and self.secret_key == DEFAULT_SECRET_KEY:
            raise ValueError("secret_key must be changed from default value in production")

        if self.money_code_max_batch < 1:
            raise ValueError("money_code_max_batch must be at least 1")

        if self.min_password_length < 1:
            raise ValueError("min_password_length must be at least 1")

        url = self.database_url
        if not url:
            logger.warning("Empty DATABASE_URL, using SQLite fallback")
            self.database_url = SQLITE_LOCAL_URL
            return self

        try:
            parsed = make_url(url)
        except ArgumentError as e:
            logger.error(f"Invalid DATABASE_URL ({e}); falling back to default sqlite database.")
            self.database_url = SQLITE_LOCAL_URL
            return self

        drivername = parsed.drivername
        if drivername.startswith("postgres") and "+asyncpg" not in drivername:
            parsed = parsed.set(drivername="postgresql+asyncpg")
            logger.info(f"Driver normalized: {drivername} -> {parsed.drivername}")
            # render_as_string re-encodes special characters in the password
            self.database_url = parsed.render_as_string(hide_password=False)

        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
