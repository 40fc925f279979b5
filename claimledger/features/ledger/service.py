from __future__ import annotations

from datetime import date, datetime, tzinfo
from decimal import Decimal
from typing import List, Optional, Union

from pydantic import ValidationError

from claimledger.core.config import settings
from claimledger.core.errors import (
    AlreadyClaimedTodayError,
    EmptyAddressError,
    InvalidAddressFormatError,
    PersistenceUnavailableError,
)
from claimledger.core.logging import log_event
from claimledger.features.ledger import days, rewards
from claimledger.features.ledger.store import LedgerStore
from claimledger.models.ledger import (
    BonusReceipt,
    ClaimReceipt,
    Cooldown,
    LedgerState,
    LedgerSummary,
    RewardPreview,
    WalletReceipt,
    WeekDay,
    parse_day,
)

ADDRESS_PREFIX = "0x"
ADDRESS_LENGTH = 42


class ClaimLedger:
    """Once-per-day claim state machine with tiered streak rewards.

    Owns the LedgerState and persists a full snapshot after every mutation.
    A store failure switches the ledger to in-memory operation for the rest
    of the session; the next ``load`` tries the store again.
    """

    def __init__(
        self,
        store: LedgerStore,
        state: Optional[LedgerState] = None,
        *,
        tz: Optional[tzinfo] = None,
        share_bonus: Optional[int] = None,
    ):
        self._store = store
        self._state = state if state is not None else LedgerState()
        self._tz = tz
        self._share_bonus = settings.SHARE_BONUS_AMOUNT if share_bonus is None else share_bonus
        self.degraded = False
        self.last_persistence_error: Optional[PersistenceUnavailableError] = None

    @classmethod
    def load(
        cls,
        store: LedgerStore,
        *,
        tz: Optional[tzinfo] = None,
        today: Optional[date] = None,
        share_bonus: Optional[int] = None,
    ) -> "ClaimLedger":
        """Load the persisted snapshot (or defaults) and reconcile the streak."""
        read_error = None
        state = None
        try:
            raw = store.read()
        except PersistenceUnavailableError as e:
            raw = None
            read_error = e

        if raw:
            state = _parse_snapshot(raw, store)

        ledger = cls(store, state, tz=tz, share_bonus=share_bonus)
        if read_error is not None:
            ledger._degrade(read_error)

        log_event(
            "info",
            "ledger.loaded",
            event_type="ledger.loaded",
            extra={
                "store": store.describe(),
                "restored": state is not None,
                "current_streak": ledger._state.current_streak,
            },
        )
        ledger.reconcile_streak_on_load(today)
        return ledger

    # Read-only accessors ---------------------------------------------
    @property
    def balance(self) -> Decimal:
        return self._state.balance

    @property
    def current_streak(self) -> int:
        return self._state.current_streak

    @property
    def best_streak(self) -> int:
        return self._state.best_streak

    @property
    def total_claimed(self) -> Decimal:
        return self._state.total_claimed

    @property
    def total_bonus(self) -> Decimal:
        return self._state.total_bonus

    @property
    def wallet_address(self) -> str:
        return self._state.wallet_address

    @property
    def last_claim_date(self) -> Optional[date]:
        return self._state.last_claim_date

    @property
    def claimed_days(self) -> List[date]:
        return list(self._state.claimed_days)

    @property
    def persisted(self) -> bool:
        return not self.degraded

    def snapshot(self) -> LedgerState:
        return self._state.model_copy(deep=True)

    # Day-boundary rules ----------------------------------------------
    def today(self, now: Optional[datetime] = None) -> date:
        return days.local_today(now, self._tz)

    def reconcile_streak_on_load(self, today: Optional[date] = None) -> bool:
        """Zero a streak whose last claim is more than one day old.

        A gap of exactly one day is left for ``claim`` to resolve.
        """
        last = self._state.last_claim_date
        if last is None:
            return False
        day = self._resolve_day(today)
        gap = days.days_between(last, day)
        if gap <= 1 or self._state.current_streak == 0:
            return False

        previous = self._state.current_streak
        self._state.current_streak = 0
        self._save()
        log_event(
            "info",
            "ledger.streak_reset",
            event_type="ledger.streak_reset",
            extra={"previous_streak": previous, "gap_days": gap, "last_claim_date": last.isoformat()},
        )
        return True

    def can_claim_today(self, today: Optional[date] = None) -> bool:
        day = self._resolve_day(today)
        return self._state.last_claim_date != day and day not in self._state.claimed_days

    def cooldown_remaining(self, now: Optional[datetime] = None) -> Cooldown:
        """Zero while a claim is available, else the time to local midnight."""
        if self.can_claim_today(self.today(now)):
            return Cooldown.from_seconds(0)
        remaining = days.cooldown_remaining(now, self._tz)
        # A sub-second remainder still means waiting.
        if remaining.ready:
            return Cooldown.from_seconds(1)
        return remaining

    def week_view(self, today: Optional[date] = None) -> List[WeekDay]:
        return days.week_view(self._state.claimed_days, self._resolve_day(today))

    # Mutations -------------------------------------------------------
    def claim(self, today: Optional[date] = None) -> ClaimReceipt:
        day = self._resolve_day(today)
        if not self.can_claim_today(day):
            log_event(
                "info",
                "ledger.claim_rejected",
                event_type="ledger.claim_rejected",
                error_code=AlreadyClaimedTodayError.code,
                extra={"day": day.isoformat()},
            )
            raise AlreadyClaimedTodayError(f"Already claimed today ({day.isoformat()})")

        state = self._state
        state.current_streak = self._streak_after_claim(day)
        tier = rewards.tier_for(state.current_streak)
        reward = tier.total

        state.balance += reward
        state.total_claimed += reward
        state.last_claim_date = day
        state.claimed_days.append(day)
        if state.current_streak > state.best_streak:
            state.best_streak = state.current_streak

        persisted = self._save()
        log_event(
            "info",
            "ledger.claimed",
            event_type="ledger.claimed",
            extra={"day": day.isoformat(), "reward": reward, "streak": state.current_streak, "persisted": persisted},
        )
        return ClaimReceipt(
            day=day,
            reward=reward,
            base_reward=tier.base_reward,
            multiplier=tier.multiplier,
            streak=state.current_streak,
            best_streak=state.best_streak,
            balance=state.balance,
            persisted=persisted,
        )

    def award_share_bonus(self) -> BonusReceipt:
        """Credit the sharing bonus. Repeatable, never streak-gated."""
        bonus = self._share_bonus
        self._state.balance += bonus
        self._state.total_bonus += bonus
        persisted = self._save()
        log_event(
            "info",
            "ledger.share_bonus",
            event_type="ledger.share_bonus",
            extra={"bonus": bonus, "balance": self._state.balance, "persisted": persisted},
        )
        return BonusReceipt(bonus=bonus, balance=self._state.balance, persisted=persisted)

    def set_wallet_address(self, candidate: Optional[str]) -> WalletReceipt:
        """Store a wallet address after a shape-only check (0x prefix, 42 chars)."""
        address = (candidate or "").strip()
        try:
            validate_wallet_address(address)
        except (EmptyAddressError, InvalidAddressFormatError) as e:
            log_event(
                "info",
                "ledger.wallet_rejected",
                event_type="ledger.wallet_rejected",
                error_code=e.code,
                extra={"length": len(address)},
            )
            raise

        self._state.wallet_address = address
        persisted = self._save()
        log_event("info", "ledger.wallet_updated", event_type="ledger.wallet_updated", extra={"persisted": persisted})
        return WalletReceipt(address=address, persisted=persisted)

    # Derived views ---------------------------------------------------
    def summary(self, today: Optional[date] = None) -> LedgerSummary:
        day = self._resolve_day(today)
        state = self._state
        can_claim = self.can_claim_today(day)
        # Already claimed: the next claim lands tomorrow and extends the streak.
        preview_streak = self._streak_after_claim(day) if can_claim else state.current_streak + 1
        preview_tier = rewards.tier_for(preview_streak)
        upcoming = rewards.next_tier(state.current_streak)

        return LedgerSummary(
            balance=state.balance,
            current_streak=state.current_streak,
            best_streak=state.best_streak,
            total_claimed=state.total_claimed,
            total_bonus=state.total_bonus,
            wallet_address=state.wallet_address,
            last_claim_date=state.last_claim_date,
            can_claim_today=can_claim,
            multiplier=rewards.multiplier(state.current_streak),
            next_reward=RewardPreview(
                streak=preview_streak,
                base_reward=preview_tier.base_reward,
                multiplier=preview_tier.multiplier,
                total=preview_tier.total,
            ),
            progress_percent=rewards.progress_percent(state.current_streak),
            milestones_reached=rewards.milestones_reached(state.current_streak),
            next_milestone=upcoming.threshold if upcoming else None,
            days_to_next_milestone=upcoming.threshold - state.current_streak if upcoming else None,
            persisted=self.persisted,
        )

    # Internal helpers ------------------------------------------------
    def _resolve_day(self, today) -> date:
        return self.today() if today is None else parse_day(today)

    def _streak_after_claim(self, day: date) -> int:
        last = self._state.last_claim_date
        if last is None:
            return 1
        if days.days_between(last, day) == 1:
            return self._state.current_streak + 1
        return 1

    def _save(self) -> bool:
        if self.degraded:
            return False
        try:
            self._store.write(self._state.model_dump_json(by_alias=True))
        except PersistenceUnavailableError as e:
            self._degrade(e)
            return False
        return True

    def _degrade(self, error: PersistenceUnavailableError) -> None:
        self.degraded = True
        self.last_persistence_error = error
        log_event(
            "warning",
            "ledger.persist_failed",
            event_type="ledger.persist_failed",
            error_code=error.code,
            extra={"store": self._store.describe(), "error_message": error.message},
        )


def validate_wallet_address(address: str) -> str:
    if not address:
        raise EmptyAddressError("Please enter an address")
    if not address.startswith(ADDRESS_PREFIX) or len(address) != ADDRESS_LENGTH:
        raise InvalidAddressFormatError("Invalid address format: expected 0x followed by 40 characters")
    return address


def _parse_snapshot(raw: Union[str, bytes], store: LedgerStore) -> Optional[LedgerState]:
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return LedgerState.model_validate_json(raw)
    except (ValidationError, ValueError, TypeError) as e:
        log_event(
            "warning",
            "ledger.snapshot_corrupt",
            event_type="ledger.snapshot_corrupt",
            extra={
                "store": store.describe(),
                "errors": e.error_count() if isinstance(e, ValidationError) else 1,
                "error_type": type(e).__name__,
            },
        )
        return None
