"""Time-of-day traffic estimate for Muay Thai gyms in Thailand.

A fixed calendar rule, not a measurement: most camps run a morning and an
afternoon session Monday to Saturday and close on Sunday.  Times are read
in Bangkok time (a fixed UTC+7 offset, Thailand has no DST).
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from typing import Any

BANGKOK = timezone(timedelta(hours=7), name="Asia/Bangkok")

SUNDAY = 6
SATURDAY = 5

CLOSED_TODAY = ("Closed Today", "gray")
CLOSED_NOW = ("Closed Now", "gray")
BUSY_MORNING = ("Busy - Morning Session", "red")
BUSY_AFTERNOON = ("Busy - Afternoon Session", "red")
MODERATE = ("Moderate", "yellow")
LOW = ("Low Traffic", "green")

STATUSES = (CLOSED_TODAY, CLOSED_NOW, BUSY_MORNING, BUSY_AFTERNOON, MODERATE, LOW)

OPEN_HOUR = 6
CLOSE_HOUR = 21
MORNING_SESSION = range(7, 10)
AFTERNOON_SESSION = range(15, 18)
MODERATE_HOURS = {6, 10, 14, 18, 19}


def classify(weekday: int, hour: int) -> tuple[str, str]:
    """Return ``(status, color)`` for a Bangkok weekday (Mon=0) and hour."""
    if weekday == SUNDAY:
        return CLOSED_TODAY
    if hour < OPEN_HOUR or hour >= CLOSE_HOUR:
        return CLOSED_NOW
    if hour in MORNING_SESSION:
        return BUSY_MORNING
    if hour in AFTERNOON_SESSION:
        # Saturday afternoons are a lighter open-mat session
        return MODERATE if weekday == SATURDAY else BUSY_AFTERNOON
    if hour in MODERATE_HOURS:
        return MODERATE
    return LOW


def gym_status(now: datetime | None = None) -> dict[str, Any]:
    """Current traffic status, shaped for ``GET /api/gym-status``."""
    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    local = now.astimezone(BANGKOK)

    status, color = classify(local.weekday(), local.hour)
    return {
        "time": local.strftime("%H:%M"),
        "hour": local.hour,
        "status": status,
        "color": color,
        "statuses": [{"status": s, "color": c} for s, c in STATUSES],
    }
