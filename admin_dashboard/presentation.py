"""Display formatting for dashboard rows and labels."""
from datetime import date, datetime, tzinfo
from typing import List, Optional, Sequence
from admin_dashboard.schemas import DisplayMessage, MessageRecord

UNKNOWN_USER = "Unknown"


def to_local(ts: datetime, tz: Optional[tzinfo]) -> datetime:
    """
    Express a timestamp in zone ``tz``.

    A ``tz`` of None means naive host local time. Naive timestamps are
    assumed to already be in ``tz``.
    """
    if tz is None:
        if ts.tzinfo is not None:
            return ts.astimezone().replace(tzinfo=None)
        return ts
    if ts.tzinfo is None:
        return ts.replace(tzinfo=tz)
    return ts.astimezone(tz)


def format_day_label(day: date) -> str:
    """Abbreviated month and day number, e.g. ``Oct 18``."""
    return f"{day:%b} {day.day}"


def format_timestamp(ts: datetime) -> str:
    """Format like an en-US locale string: ``10/18/2026, 3:04:05 PM``."""
    hour = ts.hour % 12 or 12
    return f"{ts.month}/{ts.day}/{ts.year}, {hour}:{ts:%M:%S} {'AM' if ts.hour < 12 else 'PM'}"


def to_display(records: Sequence[MessageRecord], tz: Optional[tzinfo] = None) -> List[DisplayMessage]:
    """Resolve user labels and format timestamps, keeping record order."""
    return [
        DisplayMessage(
            id=record.id,
            email=record.email or UNKNOWN_USER,
            message=record.message,
            ai_response=record.ai_response,
            created_at=format_timestamp(to_local(record.created_at, tz)),
        )
        for record in records
    ]
