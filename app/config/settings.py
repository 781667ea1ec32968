"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False
    database_pool_size: int = Field(default=10, ge=1)
    database_max_overflow: int = Field(default=20, ge=0)

    # Redis (for Dramatiq)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = "logs/staking.log"
    health_check_port: int = Field(
        default=8081, ge=1, le=65535, description="Health check HTTP server port"
    )

    # Daily ROI processing
    roi_batch_concurrency: int = Field(
        default=1,
        ge=1,
        le=64,
        description="Number of stakes processed concurrently in one ROI run",
    )
    emergency_stop_roi: bool = Field(
        default=False,
        description="Emergency stop for all ROI accrual calculations"
    )

    # Scheduler (all times UTC)
    daily_roi_hour: int = Field(default=0, ge=0, le=23)
    daily_roi_minute: int = Field(default=0, ge=0, le=59)
    compounding_update_minute: int = Field(default=0, ge=0, le=59)
    rank_update_hour: int = Field(default=0, ge=0, le=23)
    rank_update_minute: int = Field(default=30, ge=0, le=59)

    # Network bonuses
    override_max_depth: int = Field(
        default=15, ge=1, le=15,
        description="Maximum sponsor-chain depth walked for level overrides"
    )

    # Leadership pools
    pool_programs: str = Field(
        default="I,II,III,IV",
        description="Comma-separated programs whose pools are distributed monthly"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(
            ('postgresql://', 'postgresql+asyncpg://', 'sqlite+aiosqlite://')
        ):
            raise ValueError(
                'DATABASE_URL must start with postgresql://, '
                'postgresql+asyncpg:// or sqlite+aiosqlite://'
            )
        if v.startswith('postgresql://'):
            # Async engine needs the asyncpg driver
            v = v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Validate production-only constraints."""
        if self.environment == 'production':
            if self.database_url.startswith('sqlite'):
                raise ValueError(
                    'SQLite is not supported in production. '
                    'Set DATABASE_URL to a PostgreSQL database.'
                )
            if self.debug:
                logger.warning('DEBUG is enabled in production environment')
        return self

    @property
    def is_sqlite(self) -> bool:
        """True when running against SQLite (tests, local tooling)."""
        return self.database_url.startswith('sqlite')

    def get_pool_programs(self) -> list[str]:
        """Parse pool programs from comma-separated string."""
        if not self.pool_programs:
            return []

        result = []
        for code in self.pool_programs.split(","):
            code_stripped = code.strip().upper()
            if not code_stripped:
                continue
            result.append(code_stripped)
        return result


# Global settings instance
settings = Settings()
