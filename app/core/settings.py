"""
Configuration & Environment Management for Evently Bookings
"""

import logging
import secrets
from functools import lru_cache
from typing import List, Optional, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings as PydanticBaseSettings
from pydantic_settings import SettingsConfigDict

logger = logging.getLogger(__name__)


class DatabaseSettings(PydanticBaseSettings):
    """Database configuration settings"""

    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_NAME: str = "evently"
    DATABASE_URL: Optional[str] = None

    # Connection Pool Settings
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 30
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_POOL_PRE_PING: bool = True
    DB_ECHO: bool = False

    # Connection Timeouts
    DB_COMMAND_TIMEOUT: int = 60
    DB_STATEMENT_TIMEOUT: str = "60s"
    DB_LOCK_TIMEOUT: str = "30s"

    @property
    def database_url(self) -> str:
        """Generate database URL for async connections"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")


class RedisSettings(PydanticBaseSettings):
    """Redis configuration settings"""

    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None
    REDIS_USERNAME: Optional[str] = None
    REDIS_SOCKET_TIMEOUT: float = 5.0

    @property
    def redis_url(self) -> str:
        """Generate Redis URL"""
        auth = ""
        if self.REDIS_USERNAME and self.REDIS_PASSWORD:
            auth = f"{self.REDIS_USERNAME}:{self.REDIS_PASSWORD}@"
        elif self.REDIS_PASSWORD:
            auth = f":{self.REDIS_PASSWORD}@"

        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")


class SecuritySettings(PydanticBaseSettings):
    """Security and authentication settings"""

    JWT_SECRET_KEY: str = secrets.token_urlsafe(32)
    JWT_ALGORITHM: str = "HS256"

    # Token Expiration
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30

    PASSWORD_MIN_LENGTH: int = 6

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")


class BookingSettings(PydanticBaseSettings):
    """Booking engine settings"""

    # Per-event lock held around the capacity check and the insert
    BOOKING_LOCK_ENABLED: bool = True
    BOOKING_LOCK_TIMEOUT: float = 30.0
    BOOKING_LOCK_BLOCKING_TIMEOUT: float = 5.0

    # Catalog read caching
    EVENT_CACHE_TTL: int = 60 * 5

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")


class MonitoringSettings(PydanticBaseSettings):
    """Monitoring and observability settings"""

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    ENABLE_PROMETHEUS: bool = True

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")


class Settings(PydanticBaseSettings):
    """Main application settings"""

    # Environment
    ENVIRONMENT: str = "development"
    TESTING: bool = False
    VERSION: str = "1.0.0"

    # API Configuration
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Evently"
    PROJECT_DESCRIPTION: str = "Event discovery and ticket booking"

    # CORS Configuration
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")  # type: ignore
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, list):
            return v
        return []

    # Component Settings
    database: DatabaseSettings = DatabaseSettings()
    redis: RedisSettings = RedisSettings()
    security: SecuritySettings = SecuritySettings()
    booking: BookingSettings = BookingSettings()
    monitoring: MonitoringSettings = MonitoringSettings()

    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        return self.database.database_url

    model_config = SettingsConfigDict(
        case_sensitive=True, env_file=".env", extra="ignore", validate_assignment=True
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
