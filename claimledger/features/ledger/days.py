"""Calendar-day helpers.

All ledger rules compare calendar days in the user's local time zone.
Sub-day timestamps are only used for the midnight countdown.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, List, Optional

from claimledger.core.config import settings
from claimledger.models.ledger import Cooldown, WeekDay, parse_day

DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def _zone(tz: Optional[tzinfo]) -> Optional[tzinfo]:
    return tz or settings.timezone


def local_now(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> datetime:
    """Return an aware datetime in the ledger's zone.

    Naive inputs are taken as wall-clock time in that zone. Without a
    configured zone the system local time zone is used.
    """
    zone = _zone(tz)
    if now is None:
        return datetime.now(zone) if zone else datetime.now().astimezone()
    if now.tzinfo is None:
        return now.replace(tzinfo=zone) if zone else now.astimezone()
    return now.astimezone(zone) if zone else now.astimezone()


def local_today(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> date:
    return local_now(now, tz).date()


def days_between(earlier, later) -> int:
    """Whole calendar days from ``earlier`` to ``later``."""
    return (parse_day(later) - parse_day(earlier)).days


def next_midnight(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> datetime:
    current = local_now(now, tz)
    zone = _zone(tz)
    tomorrow = current.date() + timedelta(days=1)
    if zone is not None:
        return datetime.combine(tomorrow, time.min, tzinfo=zone)
    # System local: let the platform resolve the offset in effect at midnight.
    return datetime.combine(tomorrow, time.min).astimezone()


def cooldown_remaining(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> Cooldown:
    """Time left until the start of the next local calendar day.

    Differences are taken between UTC instants so DST transitions yield the
    real remaining time (23h or 25h days).
    """
    current = local_now(now, tz)
    midnight = next_midnight(current, tz)
    remaining = midnight.astimezone(timezone.utc) - current.astimezone(timezone.utc)
    return Cooldown.from_seconds(int(remaining.total_seconds()))


def week_start(today: date) -> date:
    """Sunday of the week containing ``today``."""
    return today - timedelta(days=(today.weekday() + 1) % 7)


def week_view(claimed_days: Iterable[date], today: date) -> List[WeekDay]:
    claimed = set(claimed_days)
    start = week_start(today)
    view = []
    for offset, name in enumerate(DAY_NAMES):
        day = start + timedelta(days=offset)
        view.append(
            WeekDay(
                day=day,
                name=name,
                is_today=day == today,
                claimed=day in claimed,
                is_future=day > today,
            )
        )
    return view
