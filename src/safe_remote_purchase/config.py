"""Application configuration via pydantic-settings.

Reads from .env file or environment variables. All settings are validated
at startup, so a malformed value fails fast with a clear error message.

Usage:
    from safe_remote_purchase.config import get_settings
    settings = get_settings()
    print(settings.escrow_refund_from_inactive)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from safe_remote_purchase.logging_config import LEDGER_LOGGER


class Settings(BaseSettings):
    """Central configuration for the safe remote purchase escrow."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_log_level: str = "DEBUG"
    app_json_logs: bool = False
    # Level for the ledger logger alone, e.g. DEBUG to audit every transfer
    # while the rest of the app logs at app_log_level.
    app_ledger_log_level: str | None = None

    # --- Escrow ---
    # When True, refund_seller is guarded on INACTIVE (the observed design)
    # and the RELEASE state becomes a dead end for the seller's payout.
    escrow_refund_from_inactive: bool = False
    escrow_address_prefix: str = "0x"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def use_json_logs(self) -> bool:
        """JSON logs are forced outside development."""
        return self.app_json_logs or not self.is_development

    @property
    def logger_levels(self) -> dict[str, str]:
        """Per-logger level overrides passed to setup_logging."""
        if self.app_ledger_log_level is None:
            return {}
        return {LEDGER_LOGGER: self.app_ledger_log_level}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the application settings."""
    return Settings()
