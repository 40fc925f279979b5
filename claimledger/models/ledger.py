"""Ledger data models.

LedgerState is the only persisted entity. JSON snapshots use the camelCase
field names of the original browser app so existing snapshots load as-is.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Format produced by JavaScript's Date.toDateString(), e.g. "Mon Oct 19 2026".
LEGACY_DAY_FORMAT = "%a %b %d %Y"


def parse_day(value) -> date:
    """Normalize a calendar-day identifier to a date.

    Accepts dates, datetimes (date part), ISO strings and the legacy
    toDateString format.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.strptime(text, LEGACY_DAY_FORMAT).date()
        except ValueError:
            pass
        if len(text) > 10 and text[10] in ("T", " "):
            text = text[:10]
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
    raise ValueError(f"not a calendar day: {value!r}")


class LedgerState(BaseModel):
    """Persisted streak and reward state for the single local user."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    balance: Decimal = Field(default=Decimal("0"), ge=0)
    current_streak: int = Field(default=0, ge=0, alias="currentStreak")
    best_streak: int = Field(default=0, ge=0, alias="bestStreak")
    total_claimed: Decimal = Field(default=Decimal("0"), ge=0, alias="totalClaimed")
    total_bonus: Decimal = Field(default=Decimal("0"), ge=0, alias="totalBonus")
    last_claim_date: Optional[date] = Field(default=None, alias="lastClaimDate")
    claimed_days: List[date] = Field(default_factory=list, alias="claimedDays")
    wallet_address: str = Field(default="", alias="walletAddress")

    @field_validator("last_claim_date", mode="before")
    @classmethod
    def _coerce_last_claim(cls, value):
        if value is None or value == "":
            return None
        return parse_day(value)

    @field_validator("claimed_days", mode="before")
    @classmethod
    def _coerce_claimed_days(cls, value):
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            raise ValueError("claimedDays must be a list of calendar days")
        days: List[date] = []
        for item in value:
            day = parse_day(item)
            if day not in days:
                days.append(day)
        return days

    @field_validator("wallet_address", mode="before")
    @classmethod
    def _coerce_wallet(cls, value):
        return value or ""

    @model_validator(mode="after")
    def _best_covers_current(self):
        if self.best_streak < self.current_streak:
            self.best_streak = self.current_streak
        return self


class ClaimReceipt(BaseModel):
    """Outcome of a successful claim."""

    model_config = ConfigDict(frozen=True)

    day: date
    reward: int
    base_reward: int
    multiplier: int
    streak: int
    best_streak: int
    balance: Decimal
    persisted: bool = True


class BonusReceipt(BaseModel):
    model_config = ConfigDict(frozen=True)

    bonus: int
    balance: Decimal
    persisted: bool = True


class WalletReceipt(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    persisted: bool = True


class Cooldown(BaseModel):
    """Time left until the next local midnight."""

    model_config = ConfigDict(frozen=True)

    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    total_seconds: int = 0

    @classmethod
    def from_seconds(cls, total_seconds: int) -> "Cooldown":
        total = max(0, int(total_seconds))
        return cls(
            hours=total // 3600,
            minutes=(total % 3600) // 60,
            seconds=total % 60,
            total_seconds=total,
        )

    @property
    def ready(self) -> bool:
        return self.total_seconds == 0

    @property
    def label(self) -> str:
        return f"{self.hours:02d}:{self.minutes:02d}:{self.seconds:02d}"


class RewardPreview(BaseModel):
    streak: int
    base_reward: int
    multiplier: int
    total: int


class WeekDay(BaseModel):
    day: date
    name: str
    is_today: bool
    claimed: bool
    is_future: bool


class LedgerSummary(BaseModel):
    """Read-only view consumed by presentation adapters."""

    balance: Decimal
    current_streak: int
    best_streak: int
    total_claimed: Decimal
    total_bonus: Decimal
    wallet_address: str
    last_claim_date: Optional[date]
    can_claim_today: bool
    multiplier: int
    next_reward: RewardPreview
    progress_percent: float
    milestones_reached: List[int]
    next_milestone: Optional[int]
    days_to_next_milestone: Optional[int]
    persisted: bool
