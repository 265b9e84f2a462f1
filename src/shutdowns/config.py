"""Monitor configuration loaded from environment variables.

ADDRESS_CITY is required; everything else has a default. For local runs,
put the values in a .env file in the project root.
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from src.shutdowns.models import AddressQuery, FormTimings


class MonitorConfig(BaseSettings):
    """Monitor configuration loaded from environment variables."""

    # Address typed into the shutdowns form
    address_city: str = Field(
        min_length=1,
        description="City as offered by the form's autocomplete, e.g. 'с. Софіївська Борщагівка'",
    )
    address_street: str | None = Field(
        default=None,
        description="Street; without it the schedule may be incomplete",
    )
    address_building: str | None = Field(
        default=None,
        description="House number; without it the queue may be wrong",
    )

    # Target site
    dtek_base_url: str = Field(
        default="https://www.dtek-krem.com.ua/ua/shutdowns",
        description="Shutdowns page URL",
    )
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; DtekScraper/1.0; +https://github.com/)",
        description="User-Agent for the browser context",
    )
    headless: bool = Field(default=True, description="Run Chromium headless")

    # Scheduling
    cron_pattern: str = Field(
        default="*/15 * * * *",
        description="Crontab expression for fetch cycles",
    )
    timezone: str = Field(default="Europe/Kyiv", description="Scheduler timezone")

    # Storage
    storage_path: str = Field(
        default="data/schedules.json",
        description="Schedule record rewritten every cycle",
    )
    snapshot_path: str | None = Field(
        default=None,
        description="Last notified schedule; defaults to notified.json next to storage_path",
    )

    # Form timings (milliseconds)
    request_timeout_ms: int = Field(default=20000, gt=0)
    modal_timeout_ms: int = Field(default=5000, gt=0)
    field_visible_timeout_ms: int = Field(default=1000, gt=0)
    suggestion_timeout_ms: int = Field(default=8000, gt=0)
    suggestion_click_timeout_ms: int = Field(default=1000, gt=0)
    settle_ms: int = Field(default=500, ge=0)
    poll_interval_ms: int = Field(default=100, gt=0)

    # Telegram
    telegram_bot_token: str | None = Field(default=None, description="Bot API token")
    telegram_chat_id: str | None = Field(default=None, description="Target chat or channel")

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator(
        "address_city",
        "address_street",
        "address_building",
        "telegram_bot_token",
        "telegram_chat_id",
        "snapshot_path",
        mode="before",
    )
    @classmethod
    def _strip_blank(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @property
    def address(self) -> AddressQuery:
        return AddressQuery(
            city=self.address_city,
            street=self.address_street,
            building=self.address_building,
        )

    @property
    def form_timings(self) -> FormTimings:
        return FormTimings(
            request_timeout_ms=self.request_timeout_ms,
            modal_timeout_ms=self.modal_timeout_ms,
            field_visible_timeout_ms=self.field_visible_timeout_ms,
            suggestion_timeout_ms=self.suggestion_timeout_ms,
            suggestion_click_timeout_ms=self.suggestion_click_timeout_ms,
            settle_ms=self.settle_ms,
            poll_interval_ms=self.poll_interval_ms,
        )

    @property
    def resolved_snapshot_path(self) -> Path:
        if self.snapshot_path:
            return Path(self.snapshot_path)
        return Path(self.storage_path).with_name("notified.json")

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)


# Singleton pattern
_config: MonitorConfig | None = None


def get_config() -> MonitorConfig:
    """Get the monitor configuration singleton.

    Raises:
        pydantic.ValidationError: If ADDRESS_CITY is missing or blank.
    """
    global _config
    if _config is None:
        _config = MonitorConfig()
    return _config
