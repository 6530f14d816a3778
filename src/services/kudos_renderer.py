"""Message rendering for kudos announcements, notices, and leaderboards."""

from collections.abc import Mapping

from src.domain.kudos_constants import LEADERBOARD_MEDALS
from src.domain.models import (
    KudosStats,
    LeaderboardEntry,
    RateLimitDecision,
    RateLimitStatus,
)

BUSY_NOTICE = "⚠️ Please wait for your previous kudos to finish processing."
SEND_FAILED_NOTICE = "❌ Error sending kudos."
LOOKUP_FAILED_NOTICE = "❌ Error looking up user."
STATS_DENIED_NOTICE = "🔒 No permission to view stats."
STATS_FAILED_NOTICE = "❌ Error generating stats."


def mention(user_id: str) -> str:
    return f"<@{user_id}>"


def format_recipients(recipients: list[str]) -> str:
    """Join recipients as natural English with an Oxford comma.

    Example:
        >>> format_recipients(["A"])
        'A'
        >>> format_recipients(["A", "B"])
        'A and B'
        >>> format_recipients(["A", "B", "C"])
        'A, B, and C'
    """
    if not recipients:
        return ""
    if len(recipients) == 1:
        return recipients[0]
    if len(recipients) == 2:
        return f"{recipients[0]} and {recipients[1]}"
    return f"{', '.join(recipients[:-1])}, and {recipients[-1]}"


def render_announcement(sender_id: str, recipient_ids: list[str], message: str) -> str:
    """Public "High Five" message posted to the channel."""
    recipients_text = format_recipients([mention(uid) for uid in recipient_ids])
    return (
        f"🙌 _*High Five* from {mention(sender_id)}:_\n"
        f">*{recipients_text}*  _{message}_"
    )


def render_rate_limit_notice(decision: RateLimitDecision) -> str:
    if decision.status == RateLimitStatus.BUSY:
        return BUSY_NOTICE
    return (
        f"⚠️ Please wait {decision.remaining_seconds} second(s) "
        "before sending another kudos."
    )


def _leaderboard_lines(
    entries: list[LeaderboardEntry], names: Mapping[str, str], verb: str
) -> str:
    lines: list[str] = []
    for rank, entry in enumerate(entries):
        marker = LEADERBOARD_MEDALS[rank] if rank < len(LEADERBOARD_MEDALS) else "  "
        name = names.get(entry.user_id, mention(entry.user_id))
        lines.append(f"{marker} *{name}* - {entry.count} kudos {verb}\n")
    return "".join(lines)


def render_stats(
    stats: KudosStats, names: Mapping[str, str], *, months_back: int, top_n: int
) -> str:
    """Render the private /stats report.

    Args:
        stats: Aggregated leaderboard
        names: user_id -> display name; missing ids render as mentions
        months_back: Window length shown in the header
        top_n: Leaderboard size shown in section titles

    Returns:
        Slack mrkdwn text
    """
    header = f"📊 *Kudos Statistics (Last {months_back} Months)*\n\n"
    if stats.is_empty:
        return f"{header}No kudos yet!"

    givers = _leaderboard_lines(stats.top_givers, names, "given")
    receivers = _leaderboard_lines(stats.top_receivers, names, "received")
    return (
        f"{header}"
        f"*Top {top_n} Kudos Givers:* 🎁\n{givers}\n"
        f"*Top {top_n} Kudos Receivers:* ⭐\n{receivers}\n"
        f"_Total kudos: {stats.total_kudos}_"
    )
