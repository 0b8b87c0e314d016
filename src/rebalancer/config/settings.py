"""Application settings and configuration management using Pydantic."""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Main application settings combining all configuration sections."""

    # Environment and deployment
    environment: str = "development"
    debug: bool = False

    # API settings
    endpoint_host: str = "0.0.0.0"
    endpoint_port: int = 8080
    api_reload: bool = False
    api_log_level: str = "INFO"
    cron_secret_key: Optional[str] = None

    # Database settings
    database_url: Optional[str] = None
    eod_database_url: Optional[str] = None
    data_directory: str = "data"
    database_echo_sql: bool = False
    database_pool_pre_ping: bool = True
    database_pool_recycle: int = 3600

    # Rebalance settings
    portfolio_name: str = "ML Model Portfolio"
    buy_budget: Decimal = Decimal("100000")
    price_source: str = "database"  # 'database' or 'yfinance'
    rebalance_without_signals: bool = False

    # Scheduler settings
    scheduler_enabled: bool = True
    scheduler_timezone: str = "UTC"
    rebalance_cron_day_of_week: str = "mon-fri"
    rebalance_cron_hour: int = 16
    rebalance_cron_minute: int = 30

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "structured"  # 'structured' or 'plain'
    log_file_enabled: bool = True
    log_file_path: str = "data/rebalancer.log"
    log_max_file_size: str = "10MB"
    log_backup_count: int = 5

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        valid_environments = ["development", "testing", "production"]
        if v.lower() not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v.lower()

    @field_validator("endpoint_port")
    @classmethod
    def validate_port(cls, v):
        """Validate port number is in valid range."""
        if v < 1 or v > 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("buy_budget")
    @classmethod
    def validate_buy_budget(cls, v):
        """The per-ticker buy budget has to be a positive amount."""
        if v <= 0:
            raise ValueError("Buy budget must be greater than zero")
        return v

    @field_validator("price_source")
    @classmethod
    def validate_price_source(cls, v):
        """Validate price source."""
        valid_sources = ["database", "yfinance"]
        if v.lower() not in valid_sources:
            raise ValueError(f"Price source must be one of: {valid_sources}")
        return v.lower()

    @field_validator("rebalance_cron_hour")
    @classmethod
    def validate_cron_hour(cls, v):
        if v < 0 or v > 23:
            raise ValueError("Rebalance hour must be between 0 and 23")
        return v

    @field_validator("rebalance_cron_minute")
    @classmethod
    def validate_cron_minute(cls, v):
        if v < 0 or v > 59:
            raise ValueError("Rebalance minute must be between 0 and 59")
        return v

    @field_validator("log_level", "api_log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Validate log format."""
        valid_formats = ["structured", "plain"]
        if v.lower() not in valid_formats:
            raise ValueError(f"Log format must be one of: {valid_formats}")
        return v.lower()

    def get_database_url(self) -> str:
        """Get the application database URL, defaulting to SQLite in the data directory."""
        if self.database_url:
            return self.database_url

        db_dir = Path(self.data_directory)
        db_dir.mkdir(parents=True, exist_ok=True)
        db_path = db_dir / "rebalancer.db"
        return f"sqlite:///{db_path}"

    def get_eod_database_url(self) -> str:
        """Get the EOD price database URL; shares the application database unless set."""
        return self.eod_database_url or self.get_database_url()

    def has_separate_eod_database(self) -> bool:
        return bool(self.eod_database_url) and (
            self.eod_database_url != self.get_database_url()
        )

    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()


def get_required_env_vars() -> list[str]:
    """
    Get list of required environment variables.

    Returns:
        list: List of required environment variable names
    """
    return ["CRON_SECRET_KEY"]


def validate_required_settings() -> bool:
    """
    Validate that all required settings are configured.

    Returns:
        bool: True if every required setting has a value, False otherwise
    """
    settings = get_settings()
    missing = [
        name for name in get_required_env_vars() if not getattr(settings, name.lower())
    ]
    if missing:
        print(f"Configuration validation failed, missing: {', '.join(missing)}")
        return False
    return True
