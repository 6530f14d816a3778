"""Leaderboard aggregation over recent kudos events."""

import calendar
from collections import Counter
from collections.abc import Iterable
from datetime import datetime

from src.domain.kudos_constants import STATS_TOP_N
from src.domain.models import KudosEvent, KudosStats, LeaderboardEntry


def months_before(moment: datetime, months: int) -> datetime:
    """Shift a datetime back by whole calendar months.

    The day is clamped to the length of the target month.

    Example:
        >>> months_before(datetime(2025, 5, 31), 3)
        datetime.datetime(2025, 2, 28, 0, 0)
    """
    if months < 0:
        raise ValueError("months must not be negative")

    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def rank_counts(
    counts: Counter[str], top_n: int = STATS_TOP_N
) -> list[LeaderboardEntry]:
    """Sort by count descending, then user id ascending, and keep top_n."""
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [
        LeaderboardEntry(user_id=user_id, count=count)
        for user_id, count in ranked[:top_n]
    ]


def aggregate_kudos(
    events: Iterable[KudosEvent], *, since: datetime, top_n: int = STATS_TOP_N
) -> KudosStats:
    """Count kudos given and received.

    An event with N recipients adds 1 to its sender and 1 to each of the N
    recipients (repeated recipients count each time they appear).

    Args:
        events: Events already filtered to the window
        since: Window start, carried into the result for display
        top_n: Rows per leaderboard

    Returns:
        KudosStats (empty when there are no events)
    """
    givers: Counter[str] = Counter()
    receivers: Counter[str] = Counter()
    total = 0

    for event in events:
        total += 1
        givers[event.sender_id] += 1
        for recipient_id in event.recipient_ids:
            receivers[recipient_id] += 1

    return KudosStats(
        since=since,
        total_kudos=total,
        top_givers=rank_counts(givers, top_n),
        top_receivers=rank_counts(receivers, top_n),
    )
