"""Aggregation of message records into dashboard statistics."""
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Iterator, List, Optional, Sequence, Set, Tuple
from admin_dashboard.presentation import format_day_label, to_local
from admin_dashboard.schemas import DailyStatEntry, DashboardStats, MessageRecord

TRAILING_DAYS = 7


def _midnight(day: date, tz: Optional[tzinfo]) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def start_of_day(now: datetime) -> datetime:
    """Truncate ``now`` to local midnight, keeping its zone."""
    return _midnight(now.date(), now.tzinfo)


def day_windows(now: datetime, days: int = TRAILING_DAYS) -> Iterator[Tuple[date, datetime, datetime]]:
    """
    Yield (day, start, end) for the trailing ``days`` calendar days, oldest first.

    Boundaries are wall-clock midnights, so a DST change shortens or
    lengthens a window rather than moving it.
    """
    today = now.date()
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        yield day, _midnight(day, now.tzinfo), _midnight(day + timedelta(days=1), now.tzinfo)


def distinct_users(records: Iterable[MessageRecord]) -> Set[str]:
    """Distinct user emails, skipping records whose user could not be resolved."""
    return {record.email for record in records if record.email}


def compute(
    records: Sequence[MessageRecord],
    user_total: int,
    now: datetime,
) -> Tuple[DashboardStats, List[DailyStatEntry]]:
    """
    Derive the summary figures and the 7-day activity series.

    Args:
        records: Message records in any order
        user_total: Authoritative user-profile count, passed through unchanged
        now: Instant captured once for the whole computation

    Returns:
        (stats, daily) where daily holds exactly 7 entries, oldest first
    """
    tz = now.tzinfo
    today_start = start_of_day(now)
    stamped = [(to_local(record.created_at, tz), record) for record in records]

    today = [record for ts, record in stamped if ts >= today_start]
    stats = DashboardStats(
        total_messages=len(records),
        total_users=user_total,
        messages_today=len(today),
        active_users_today=len(distinct_users(today)),
    )

    daily = []
    for day, start, end in day_windows(now):
        in_window = [record for ts, record in stamped if start <= ts < end]
        daily.append(
            DailyStatEntry(
                date=format_day_label(day),
                messages=len(in_window),
                users=len(distinct_users(in_window)),
            )
        )

    return stats, daily
