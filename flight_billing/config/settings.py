"""
Configuration management for the flight billing engine.
"""

from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BillingEngineConfig(BaseSettings):
    """Configuration settings for the flight billing engine."""

    # Remote API Configuration
    api_base_url: str = Field(
        default="http://localhost:3000/api", alias="BILLING_API_BASE_URL"
    )
    api_token: Optional[str] = Field(default=None, alias="BILLING_API_TOKEN")
    request_timeout: float = Field(default=10.0, gt=0, alias="BILLING_REQUEST_TIMEOUT")

    # Application Configuration
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Retry Configuration
    max_retries: int = Field(default=3, ge=0, alias="MAX_RETRIES")
    retry_delay: float = Field(default=1.0, ge=0, alias="RETRY_DELAY")

    # Rate Cache Configuration
    rate_cache_ttl_seconds: float = Field(
        default=60.0, ge=0, alias="RATE_CACHE_TTL_SECONDS"
    )
    rate_cache_max_size: int = Field(default=256, gt=0, alias="RATE_CACHE_MAX_SIZE")

    # Billing Defaults
    default_total_time_method: str = Field(
        default="hobbs", alias="DEFAULT_TOTAL_TIME_METHOD"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v):
        """Ensure the API base URL is an http(s) URL without trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("API base URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Ensure environment is valid."""
        valid_envs = ["development", "testing", "production"]
        if v.lower() not in valid_envs:
            raise ValueError(f"Environment must be one of: {valid_envs}")
        return v.lower()

    @field_validator("default_total_time_method")
    @classmethod
    def validate_total_time_method(cls, v):
        """Ensure the default total time method is a known method."""
        # Imported here to keep settings importable without the model layer
        from flight_billing.models.aircraft import TotalTimeMethod

        valid_methods = [method.value for method in TotalTimeMethod]
        if v.lower() not in valid_methods:
            raise ValueError(f"Total time method must be one of: {valid_methods}")
        return v.lower()

    @property
    def rate_cache_enabled(self) -> bool:
        """Rate caching is disabled when the TTL is zero."""
        return self.rate_cache_ttl_seconds > 0

    def get_request_headers(self) -> dict:
        """Get the default HTTP headers for the billing API."""
        headers = {"Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers


def load_config(env_file: Optional[str] = None) -> BillingEngineConfig:
    """Load configuration from environment variables and .env file."""
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    return BillingEngineConfig()


# Global configuration instance
_config: Optional[BillingEngineConfig] = None


def get_config() -> BillingEngineConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(env_file: Optional[str] = None) -> BillingEngineConfig:
    """Reload configuration (useful for testing)."""
    global _config
    _config = load_config(env_file)
    return _config
