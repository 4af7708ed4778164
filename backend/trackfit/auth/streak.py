"""Consecutive-day access streak for users."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from trackfit.auth.models import User

UserT = TypeVar("UserT", bound="User")


def to_iso_timestamp(moment: datetime) -> str:
    """Format as UTC ISO-8601 with millisecond precision and a Z suffix."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _access_day(value: str) -> date | None:
    try:
        return date.fromisoformat(value.split("T")[0])
    except ValueError:
        return None


def _days_since(last_access_date: str | None, now: datetime) -> int | None:
    last_day = _access_day(last_access_date) if last_access_date else None
    if last_day is None:
        return None
    return (now.astimezone(UTC).date() - last_day).days


def calculate_active_days_streak(last_access_date: str | None, current_streak: int, now: datetime) -> int:
    """Return the streak after an access at ``now``.

    Same UTC day keeps the streak, the next day extends it, a longer gap
    restarts it at 1. A missing or unparseable last access starts at 1; a
    last access in the future leaves the streak unchanged.
    """
    days = _days_since(last_access_date, now)
    if days is None:
        return 1
    if days == 1:
        return current_streak + 1
    if days > 1:
        return 1
    return current_streak


def record_access(user: UserT, now: datetime) -> UserT:
    """Return ``user`` with streak and last access updated, or ``user`` itself when nothing changes."""
    days = _days_since(user.last_access_date, now)
    if days is not None and days <= 0:
        return user
    streak = calculate_active_days_streak(user.last_access_date, user.active_days, now)
    return user.model_copy(update={"active_days": streak, "last_access_date": to_iso_timestamp(now)})
