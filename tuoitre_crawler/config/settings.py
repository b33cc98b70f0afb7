"""Configuration settings for the Tuoi Tre crawler."""

from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
import os

from dateutil import tz
from dotenv import load_dotenv


DEFAULT_LISTING_URL = "https://tuoitre.vn/tin-moi-nhat.htm"
DEFAULT_BASE_URL = "https://tuoitre.vn"
DEFAULT_DATABASE_URL = "sqlite:///articles.db"


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class Settings:
    """Configuration settings for the crawler.

    Attributes:
        listing_url: Latest-news page the stubs are read from
        base_url: Origin relative article links are resolved against
        crawl_limit: Default number of listing entries per run
        request_timeout_seconds: Timeout for each HTTP request
        request_delay_seconds: Delay before each HTTP request
        max_retries: Extra attempts for a failed fetch, 0 disables retries
        retry_backoff_seconds: Multiplier for exponential retry backoff
        run_deadline_seconds: Overall run budget, 0 disables the deadline
        database_url: SQLAlchemy URL of the article store
        source_timezone: IANA name attached to parsed times, empty for naive times
        run_log_dir: Directory for JSON run logs, empty to skip writing them
    """

    listing_url: str = DEFAULT_LISTING_URL
    base_url: str = DEFAULT_BASE_URL
    crawl_limit: int = 10
    request_timeout_seconds: float = 30.0
    request_delay_seconds: float = 1.0
    max_retries: int = 3
    retry_backoff_seconds: float = 1.0
    run_deadline_seconds: float = 0.0
    database_url: str = DEFAULT_DATABASE_URL
    source_timezone: str = ""
    run_log_dir: str = ""

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ConfigurationError: If any configuration value is invalid.
        """
        errors: list[str] = []

        if not self.listing_url.startswith(("http://", "https://")):
            errors.append("listing_url must be an http(s) URL")

        if not self.base_url.startswith(("http://", "https://")):
            errors.append("base_url must be an http(s) URL")

        if self.crawl_limit < 0:
            errors.append("crawl_limit must be non-negative")

        if self.request_timeout_seconds <= 0.0:
            errors.append("request_timeout_seconds must be positive")

        if self.request_delay_seconds < 0.0:
            errors.append("request_delay_seconds must be non-negative")

        if self.max_retries < 0:
            errors.append("max_retries must be non-negative")

        if self.retry_backoff_seconds < 0.0:
            errors.append("retry_backoff_seconds must be non-negative")

        if self.run_deadline_seconds < 0.0:
            errors.append("run_deadline_seconds must be non-negative")

        if not self.database_url:
            errors.append("database_url must not be empty")

        if self.source_timezone and tz.gettz(self.source_timezone) is None:
            errors.append(f"source_timezone is not a known timezone: {self.source_timezone}")

        if errors:
            raise ConfigurationError("; ".join(errors))

    def timezone(self) -> tzinfo | None:
        """Return the configured source timezone, or None for naive times."""
        if not self.source_timezone:
            return None
        return tz.gettz(self.source_timezone)


def _parse_float(value: str | None, default: float) -> float:
    """Parse a string to float, returning default if None or invalid."""
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _parse_int(value: str | None, default: int) -> int:
    """Parse a string to int, returning default if None or invalid."""
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def load_settings(env_path: str | Path | None = None, validate: bool = True) -> Settings:
    """Load settings from environment variables and .env file.

    Args:
        env_path: Optional path to .env file. If None, searches for .env
                  in current directory and parent directories.
        validate: If True, validate settings after loading.

    Returns:
        Settings instance with loaded configuration.

    Raises:
        ConfigurationError: If validate=True and configuration is invalid.
    """
    if env_path:
        load_dotenv(env_path)
    else:
        load_dotenv()

    settings = Settings(
        listing_url=os.getenv("LISTING_URL", DEFAULT_LISTING_URL),
        base_url=os.getenv("BASE_URL", DEFAULT_BASE_URL),
        crawl_limit=_parse_int(os.getenv("CRAWL_LIMIT"), 10),
        request_timeout_seconds=_parse_float(
            os.getenv("REQUEST_TIMEOUT_SECONDS"), 30.0
        ),
        request_delay_seconds=_parse_float(
            os.getenv("REQUEST_DELAY_SECONDS"), 1.0
        ),
        max_retries=_parse_int(os.getenv("MAX_RETRIES"), 3),
        retry_backoff_seconds=_parse_float(
            os.getenv("RETRY_BACKOFF_SECONDS"), 1.0
        ),
        run_deadline_seconds=_parse_float(
            os.getenv("RUN_DEADLINE_SECONDS"), 0.0
        ),
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        source_timezone=os.getenv("SOURCE_TIMEZONE", ""),
        run_log_dir=os.getenv("RUN_LOG_DIR", ""),
    )

    if validate:
        settings.validate()

    return settings
