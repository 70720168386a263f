"""Application settings and configuration management using Pydantic."""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Main application settings combining all configuration sections."""

    # Environment and deployment
    environment: str = "development"

    # Polling settings
    poll_interval_seconds: int = 60
    cache_ttl_seconds: float = 55.0
    min_request_gap_seconds: float = 4.0
    request_timeout_seconds: float = 10.0

    # Quote provider settings
    quote_base_url: str = "https://query2.finance.yahoo.com"
    chart_interval: str = "5m"
    chart_range: str = "5d"
    user_agent: str = DEFAULT_USER_AGENT

    # Scanner output settings
    history_length: int = 30
    fetch_log_size: int = 50
    symbols_file: Optional[str] = None

    # API settings
    endpoint_host: str = "127.0.0.1"
    endpoint_port: int = 8000
    api_log_level: str = "INFO"

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "plain"  # 'structured' or 'plain'
    log_file_enabled: bool = False
    log_file_path: str = "data/bandwatch.log"
    log_max_file_size: str = "10MB"
    log_backup_count: int = 5

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BANDWATCH_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        valid_environments = ["development", "testing", "production"]
        if v.lower() not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v.lower()

    @field_validator("poll_interval_seconds")
    @classmethod
    def validate_interval(cls, v):
        """Validate poll interval is reasonable."""
        if v < 1 or v > 3600:
            raise ValueError("Poll interval must be between 1 and 3600 seconds")
        return v

    @field_validator("min_request_gap_seconds")
    @classmethod
    def validate_gap(cls, v):
        """Validate the inter-request gap."""
        if v < 0:
            raise ValueError("Minimum request gap cannot be negative")
        return v

    @field_validator("request_timeout_seconds", "cache_ttl_seconds")
    @classmethod
    def validate_positive(cls, v):
        """Validate timeouts and TTLs are positive."""
        if v <= 0:
            raise ValueError("Value must be greater than zero")
        return v

    @field_validator("history_length", "fetch_log_size")
    @classmethod
    def validate_bounded_size(cls, v):
        """Validate bounded buffer sizes."""
        if v < 1:
            raise ValueError("Buffer sizes must be at least 1")
        return v

    @field_validator("endpoint_port")
    @classmethod
    def validate_port(cls, v):
        """Validate port number is in valid range."""
        if v < 1 or v > 65535:
            raise ValueError("Port must be between 1 and 65535")
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

    @model_validator(mode="after")
    def validate_cache_ttl(self):
        """Cached payloads must expire before the next poll."""
        if self.cache_ttl_seconds >= self.poll_interval_seconds:
            raise ValueError("Cache TTL must be shorter than the poll interval")
        return self


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()
