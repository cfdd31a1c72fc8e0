"""
Application settings
- Database, Redis and reconciliation windows are configured here.
- Values can be overridden through environment variables or a .env file.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///inventory.db"

    # Redis (falls back to an in-memory queue when unreachable)
    REDIS_URL: str = "redis://localhost:6379"

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    # Tenant used when a request carries no X-Tenant-Id header
    DEFAULT_TENANT: str = "default"

    # KPI rolling window and short "recent" window (days)
    KPI_WINDOW_DAYS: int = 30
    RECENT_DAYS: int = 7

    # A physical count older than this is due again (days)
    COUNT_STALE_DAYS: int = 30

    # Global low-stock threshold for items without their own reorder point
    LOW_STOCK_THRESHOLD: float = 5

    # Job statuses whose allocations no longer count as active
    CLOSED_JOB_STATUSES: list[str] = [
        "closed", "complete", "completed", "cancelled", "canceled", "archived",
    ]

    # Suppress repeats of the same alert for this long (seconds)
    ALERT_COOLDOWN_SECONDS: int = 300

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
