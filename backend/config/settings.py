from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    database_url: str = "sqlite:///./carwatch.db"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False

    # CORS - web frontend
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Listing index: "sql" reads the local listings table, "http" calls a search service
    listing_index_backend: str = "sql"
    listing_index_url: str = ""
    listing_index_timeout_seconds: float = 10.0

    # Alert scheduler
    alert_tick_seconds: int = 60
    daily_digest_hours: int = 24
    weekly_digest_days: int = 7
    scheduler_max_workers: int = 8
    checkpoint_write_attempts: int = 3

    # Redis / Celery
    redis_url: str = ""
    celery_broker_url: str = ""
    celery_result_backend: str = ""

    # Environment
    environment: str = "development"
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_deployed(self) -> bool:
        return self.environment.lower() in ("production", "staging")

    @property
    def effective_celery_broker(self) -> str:
        return self.celery_broker_url or self.redis_url or "memory://"

    @property
    def effective_celery_backend(self) -> str:
        return self.celery_result_backend or self.redis_url or "cache+memory://"

    def validate_production(self) -> None:
        """Raise if production is using insecure or incomplete settings."""
        if self.is_production and "sqlite" in self.database_url:
            raise ValueError("DATABASE_URL must point at a server database in production")
        if self.is_production and not self.redis_url:
            raise ValueError("REDIS_URL must be set in production")
        if self.listing_index_backend not in ("sql", "http"):
            raise ValueError("LISTING_INDEX_BACKEND must be 'sql' or 'http'")
        if self.listing_index_backend == "http" and not self.listing_index_url:
            raise ValueError("LISTING_INDEX_URL must be set when LISTING_INDEX_BACKEND=http")
        if self.alert_tick_seconds <= 0:
            raise ValueError("ALERT_TICK_SECONDS must be positive")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
