from decimal import Decimal
from pathlib import Path
from typing import Any, List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Keep slippage defaults consistent with the offered options."""

        super().model_post_init(__context)

        if self.default_slippage <= 0:
            object.__setattr__(self, "default_slippage", Decimal("2.5"))

    log_level: str = Field(default="INFO", description="Logging level")

    # Aggregator
    aggregator_base_url: str = Field(
        default="https://one-inch-backend.vercel.app",
        description="Base URL of the swap aggregator backend",
        validation_alias=AliasChoices("aggregator_base_url", "ONEINCH_BACKEND_URL"),
    )
    request_timeout_seconds: int = Field(default=20, description="Request timeout")

    # Rate limiting
    quote_debounce_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Debounce window for quote requests",
    )
    latency_buffer_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Fixed delay before every aggregator call",
    )

    # Swap defaults
    default_slippage: Decimal = Field(
        default=Decimal("2.5"),
        description="Slippage tolerance (percent) used until the user picks one",
    )
    slippage_options: List[Decimal] = Field(
        default_factory=lambda: [Decimal("0.5"), Decimal("2.5"), Decimal("5.0")],
        description="Slippage choices offered by the settings popover",
    )

    # Notifications and transaction tracking
    notification_duration_seconds: float = Field(
        default=1.5,
        description="How long transient notifications stay visible",
    )
    tx_poll_interval_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Interval between wallet status polls",
    )
    tx_confirmation_timeout_seconds: float = Field(
        default=1800.0,
        description="Give up waiting for a confirmation after this long",
    )

    token_list_path: Optional[Path] = Field(
        default=None,
        description="JSON token catalog; the bundled list is used when unset",
    )


# Global settings instance
settings = Settings()
