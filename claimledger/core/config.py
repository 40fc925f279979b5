import logging
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings
from pydantic import ConfigDict

STORE_KINDS = ("file", "sql", "memory")


class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False
    LOG_LEVEL: str = "INFO"

    # Persistence
    LEDGER_STORE: str = "file"  # file | sql | memory
    LEDGER_STORE_KEY: str = "ssc_data"
    LEDGER_DATA_DIR: str = "data"
    DATABASE_URL: Optional[str] = None  # sql store only; defaults to sqlite in LEDGER_DATA_DIR

    # Calendar
    LEDGER_TIMEZONE: Optional[str] = None  # IANA name, None = system local time

    # Rewards
    SHARE_BONUS_AMOUNT: int = 5

    # Local HTTP adapter
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def data_dir(self) -> Path:
        return Path(self.LEDGER_DATA_DIR)

    @property
    def database_url(self) -> str:
        return self.DATABASE_URL or f"sqlite:///{self.data_dir / 'claimledger.db'}"

    @property
    def timezone(self) -> Optional[ZoneInfo]:
        """Configured zone, or None (system local time) when unset or unknown."""
        if not self.LEDGER_TIMEZONE:
            return None
        try:
            return ZoneInfo(self.LEDGER_TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError, OSError):
            return None


settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate ledger configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only and
    return False so callers can fall back to defaults.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("claimledger")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    problems = []
    store_kind = (getattr(cfg, "LEDGER_STORE", "file") or "").lower()
    if store_kind not in STORE_KINDS:
        problems.append(f"LEDGER_STORE must be one of {', '.join(STORE_KINDS)} (got {store_kind!r})")

    tz_name = getattr(cfg, "LEDGER_TIMEZONE", None)
    if tz_name:
        try:
            ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError, OSError):
            problems.append(f"LEDGER_TIMEZONE is not a known timezone: {tz_name}")

    if getattr(cfg, "SHARE_BONUS_AMOUNT", 0) < 0:
        problems.append("SHARE_BONUS_AMOUNT must not be negative")

    if problems:
        message = "Invalid configuration: " + "; ".join(problems)
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)
        return False

    return True
