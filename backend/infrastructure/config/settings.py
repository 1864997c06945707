"""Application settings and configuration."""
import json
from functools import lru_cache
from typing import Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "GallopMart Subscriptions"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"  # development, test, staging, production

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1

    # Database
    database_url: str = "sqlite+aiosqlite:///./gallopmart.db"
    database_echo: bool = False
    db_pool_size: int = 20
    db_max_overflow: int = 40

    @field_validator("database_url", mode="before")
    @classmethod
    def fix_database_url(cls, v: str) -> str:
        """Auto-convert postgresql:// URLs to the asyncpg driver."""
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+asyncpg://", 1)
            if v.startswith("postgres://"):
                return v.replace("postgres://", "postgresql+asyncpg://", 1)
        return v

    # CORS - stored as str to prevent pydantic-settings auto-JSON-parse failures
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list, stripping trailing slashes."""
        v = self.cors_origins.strip()
        if v.startswith("["):
            try:
                origins = json.loads(v)
                return [o.rstrip("/") for o in origins]
            except json.JSONDecodeError:
                pass
        return [origin.strip().strip("'\"").rstrip("/") for origin in v.split(",") if origin.strip()]

    # Razorpay (Payments)
    razorpay_key_id: Optional[str] = None
    razorpay_key_secret: Optional[str] = None
    razorpay_api_base: str = "https://api.razorpay.com/v1"
    razorpay_timeout: float = 15.0
    # Accept any checkout signature; never enable outside local testing
    payment_test_mode: bool = False

    # Rate limiting
    rate_limit_storage_uri: str = "memory://"
    rate_limit_default: str = "100/minute"
    create_order_rate_limit: str = "5/minute"
    # Key on X-Forwarded-For / X-Real-IP; enable only behind a proxy that sets them
    trust_forwarded_headers: bool = False

    # Expiry sweep
    expiry_sweep_batch_size: int = 500
    # Seconds between in-process sweeps; 0 leaves the sweep to an external cron
    expiry_sweep_interval_seconds: int = 3600

    # Admin endpoints (sweep trigger); unset means open, development only
    admin_api_key: Optional[str] = None

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment == "development"

    def validate_production_secrets(self) -> None:
        """Validate that production payment credentials are configured.

        Called automatically by get_settings().  In production/staging the
        app refuses to start without Razorpay credentials, and test mode
        payment acceptance is never allowed there.
        """
        if self.environment in ("production", "staging"):
            if not self.razorpay_key_id:
                raise ValueError("RAZORPAY_KEY_ID is required in production!")
            if not self.razorpay_key_secret:
                raise ValueError("RAZORPAY_KEY_SECRET is required in production!")
            if self.payment_test_mode:
                raise ValueError("PAYMENT_TEST_MODE must be False in production!")
            if not self.admin_api_key:
                raise ValueError("ADMIN_API_KEY is required in production!")

        if self.environment == "production" and self.database_echo:
            raise ValueError(
                "DATABASE_ECHO must be False in production to prevent SQL queries in logs"
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Automatically validates that production/staging deployments have
    proper secrets configured; the app will refuse to start otherwise.
    """
    s = Settings()
    s.validate_production_secrets()
    return s


# Global settings instance
settings = get_settings()
