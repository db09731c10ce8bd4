from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List
import os


class Settings(BaseSettings):
    """Global app settings loaded from environment.
    - Keep defaults light for dev.
    - Override via .env or real env vars.
    """

    APP_NAME: str = "wildlife_park_api"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = True

    MONGODB_URI: str = "mongodb://localhost:27017/wildlife_park"

    # JWT settings (tokens are issued by the identity provider, we only verify)
    JWT_SECRET: str = "wildlife_park_dev_secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str | None = None
    # Auth0-style providers put the role under a namespaced claim
    JWT_ROLE_CLAIM: str = "role"

    # Raw CORS string from env (comma-separated); parsed via cors_origins property
    CORS_ORIGINS: str | None = None

    # Zone used to decide what "today" is for booking date rules
    PARK_TIMEZONE: str = "UTC"

    # Logging: level defaults to DEBUG/INFO from APP_DEBUG
    LOG_LEVEL: str | None = None
    LOG_TO_FILE: bool = True
    LOG_DIR: str = "logs"
    LOG_MAX_BYTES: int = 10 * 1024 * 1024  # 10MB
    LOG_BACKUP_COUNT: int = 5

    RATE_LIMIT_ENABLED: bool = True
    BOOKING_VALIDATE_RATE_LIMIT: str = "30/minute"

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def cors_origins(self) -> List[str]:
        """Return CORS origins as a list, parsing comma-separated env string."""
        raw = self.CORS_ORIGINS or os.getenv("CORS_ORIGINS", "") or ""
        return [o.strip() for o in raw.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
