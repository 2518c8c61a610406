"""
Configuration settings for the dashboard UI suite.

All settings can be overridden via environment variables or a `.env` file.
"""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")


class Settings(BaseSettings):
    """Suite settings with environment variable support."""

    # Environment Configuration
    ENVIRONMENT: str = Field(default="development", description="Current environment")

    # Target dashboard
    BASE_URL: str = Field(
        default="http://localhost:5173/#/",
        description="Dashboard base URL, page paths are appended to it"
    )
    REQUEST_PREFIX: str = Field(
        default="http://srv-am-dsb:81/rpc/",
        description="Only responses whose URL starts with this prefix are validated"
    )
    DEFAULT_DATE: str = Field(
        default="2023-09-30",
        description="Default report date, available to page files as ${DEFAULT_DATE}"
    )
    PAGES_DIR: str = Field(default="pages", description="Directory holding page YAML files")

    # Browser Configuration
    BROWSER: str = Field(default="chromium", description="Browser engine: chromium, firefox or webkit")
    HEADLESS: bool = Field(default=True, description="Run browser headless")
    SLOW_MO_MS: int = Field(default=0, description="Delay inserted between browser operations")
    VIEWPORT_WIDTH: int = Field(default=1920, description="Viewport width")
    VIEWPORT_HEIGHT: int = Field(default=1080, description="Viewport height")

    # Settle delays
    UI_SETTLE_MS: int = Field(default=500, description="Pause after a UI click")
    OPTION_COMMIT_MS: int = Field(
        default=1000,
        description="Pause after opening a selector or committing an option/date"
    )

    # Page semantics
    COMPARE_YEARS_KEY: str = Field(
        default="compareYears",
        description="Top filter whose value lists the KPI compare units"
    )
    RANDOM_SEED: Optional[int] = Field(
        default=None,
        description="Seed for 'random' option selection (unseeded when empty)"
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Log level")
    LOG_FORMAT: str = Field(default="text", description="Log format: json or text")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()


# Validation
def validate_settings(current: Optional[Settings] = None):
    """Validate critical settings before a browser session is started."""
    current = current or settings
    errors = []

    if not current.BASE_URL.startswith(("http://", "https://")):
        errors.append(f"BASE_URL must be an http(s) URL, got '{current.BASE_URL}'")

    if not current.REQUEST_PREFIX:
        errors.append("REQUEST_PREFIX is empty: no request would ever be validated")

    if current.BROWSER not in SUPPORTED_BROWSERS:
        errors.append(
            f"BROWSER '{current.BROWSER}' is not one of: {', '.join(SUPPORTED_BROWSERS)}"
        )

    if errors:
        raise ValueError("Configuration errors: " + "; ".join(errors))
