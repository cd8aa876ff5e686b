# Complete settings with ALL required sections
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from enum import Enum
from typing import List, Literal, Union


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class LoggingSettings(BaseModel):
    # Core logging settings
    level: str = "INFO"
    json_format: bool = True

    # Console logging
    console_enabled: bool = True
    console_json_format: bool = False  # Plain text for console by default
    console_stream: Literal["stdout", "stderr"] = "stdout"

    # File logging
    file_enabled: bool = False
    logs_dir: str = "logs"
    file_max_size: str = "50MB"

    # Multi-channel logging (one file per channel, requires file_enabled)
    multi_channel_enabled: bool = True

    # Redaction
    redact_keys: list[str] = [
        "authorization", "access_token", "refresh_token", "api_key", "api_secret",
        "password", "secret", "token", "response_text"
    ]

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        if v.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return v.upper()


class ValidatorSettings(BaseModel):
    """Thresholds used by the response validator"""
    # Dollar amounts below this are fees/rounding noise, never flagged
    materiality_threshold: Decimal = Decimal("1")
    # Inclusive distance from an allowed amount that still counts as a match
    dollar_tolerance: Decimal = Decimal("0.50")
    max_dollar_violations: int = 3
    max_ticker_violations: int = 5
    # Characters on each side of a ticker searched for trade-context verbs
    ticker_context_window: int = 60
    # Confidence threshold quoted in the zero-trade replacement message
    confidence_threshold: int = 65
    # Closed trades listed in the replacement summary
    max_recent_trades: int = 5
    # Closed trades loaded into a context by the context builder
    recent_trades_limit: int = 10
    # Additional uppercase words that are never treated as tickers
    extra_excluded_words: Union[str, List[str]] = Field(
        default_factory=list,
        description="Comma-separated or list of extra non-ticker acronyms"
    )

    @field_validator("extra_excluded_words", mode="before")
    @classmethod
    def parse_extra_excluded_words(cls, v):
        """Parse comma-separated string or return list as-is"""
        if isinstance(v, str):
            return [word.strip().upper() for word in v.split(",") if word.strip()]
        return [str(word).strip().upper() for word in v]

    @field_validator("materiality_threshold", "dollar_tolerance")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("Dollar thresholds must be non-negative")
        return v

    @field_validator(
        "max_dollar_violations",
        "max_ticker_violations",
        "ticker_context_window",
        "max_recent_trades",
        "recent_trades_limit",
    )
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("Limits must be positive")
        return v

    @field_validator("confidence_threshold")
    @classmethod
    def validate_confidence(cls, v):
        if not 0 <= v <= 100:
            raise ValueError("Confidence threshold must be between 0 and 100")
        return v


class MonitoringSettings(BaseModel):
    # Metrics collection
    metrics_enabled: bool = True

    # Prometheus bucket tuning (optional overrides)
    validation_duration_buckets: list[float] = [
        0.0001, 0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1
    ]


class Settings(BaseSettings):
    """Main application settings, loaded from environment variables"""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore"
    )

    app_name: str = "AYN Response Guard"
    version: str = "1.0.0"
    environment: Environment = Environment.DEVELOPMENT

    logging: LoggingSettings = LoggingSettings()
    validator: ValidatorSettings = ValidatorSettings()
    monitoring: MonitoringSettings = MonitoringSettings()

    @property
    def logs_dir(self) -> str:
        """Get path to logs directory"""
        return self.logging.logs_dir


# No global settings instance - use dependency injection instead
