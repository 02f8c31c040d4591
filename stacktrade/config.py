"""Runtime configuration — env-driven.

Centralized config using pydantic-settings. Reads from a .env file and
STACKTRADE_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from stacktrade.models.ledger import DEFAULT_FEE_PERCENT, GENESIS_BLOCK_HEIGHT


class TradeConfig(BaseSettings):
    """Marketplace configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export STACKTRADE_LOG_LEVEL=DEBUG
        export STACKTRADE_FEE_PERCENT=5
        export STACKTRADE_LEDGER_PATH=/data/stacktrade.db

    Or via .env file::

        STACKTRADE_ENVIRONMENT=production
        STACKTRADE_JOURNAL_ENABLED=false
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="STACKTRADE_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Ledger parameters
    fee_percent: int = Field(default=DEFAULT_FEE_PERCENT, ge=0, le=100)
    genesis_block_height: int = Field(default=GENESIS_BLOCK_HEIGHT, ge=0)

    # Storage
    ledger_path: Path = Path(".stacktrade/ledger.db")
    journal_enabled: bool = True
    lock_timeout: float = Field(default=5.0, gt=0)  # seconds to wait for another writer

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton, import as `from stacktrade.config import config`
config = TradeConfig()
