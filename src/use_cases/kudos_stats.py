"""Kudos leaderboard use case.

Loads the trailing window from the store, aggregates it, resolves display
names, and answers the requester privately.
"""

import asyncio
from datetime import datetime

from src.config.logging_config import get_logger
from src.config.settings import Settings
from src.domain.exceptions import AuthorizationError
from src.domain.models import KudosStats
from src.domain.protocols import KudosStoreProtocol, SlackClientProtocol
from src.services.kudos_renderer import (
    STATS_DENIED_NOTICE,
    STATS_FAILED_NOTICE,
    render_stats,
)
from src.services.stats_aggregator import aggregate_kudos, months_before
from src.use_cases.send_kudos import KudosContext, PrivateReply

logger = get_logger(__name__)


def ensure_stats_access(settings: Settings, user_id: str) -> None:
    """Raise AuthorizationError unless user_id may view stats."""
    if not settings.is_stats_authorized(user_id):
        raise AuthorizationError(f"User {user_id} may not view stats")


def collect_kudos_stats(
    store: KudosStoreProtocol,
    *,
    now: datetime,
    months_back: int,
    top_n: int,
) -> KudosStats:
    """Aggregate kudos sent in the last months_back months.

    Raises:
        RepositoryError: The store could not be read
    """
    since = months_before(now, months_back)
    events = store.query_recent_since(since)
    return aggregate_kudos(events, since=since, top_n=top_n)


async def resolve_display_names(
    slack: SlackClientProtocol, user_ids: list[str]
) -> dict[str, str]:
    """Look up each distinct user once; unknown users are left out."""
    names: dict[str, str] = {}
    for user_id in dict.fromkeys(user_ids):
        name = await slack.get_user_name(user_id)
        if name:
            names[user_id] = name
    return names


async def kudos_stats_use_case(
    ctx: KudosContext,
    settings: Settings,
    *,
    user_id: str,
    reply: PrivateReply,
) -> KudosStats | None:
    """Answer /stats privately.

    Args:
        ctx: Shared collaborators
        settings: Provides allow-list, window length and leaderboard size
        user_id: Requester
        reply: Sends a private message to the requester

    Returns:
        Stats that were rendered, or None on denial or failure
    """
    try:
        ensure_stats_access(settings, user_id)
    except AuthorizationError:
        logger.info("kudos_stats_denied", user_id=user_id)
        await reply(STATS_DENIED_NOTICE)
        return None

    try:
        stats = await asyncio.to_thread(
            collect_kudos_stats,
            ctx.store,
            now=ctx.clock(),
            months_back=settings.stats_months_back,
            top_n=settings.stats_top_n,
        )
        ranked = [entry.user_id for entry in stats.top_givers + stats.top_receivers]
        names = await resolve_display_names(ctx.slack, ranked)
        text = render_stats(
            stats,
            names,
            months_back=settings.stats_months_back,
            top_n=settings.stats_top_n,
        )
    except Exception:
        logger.exception("kudos_stats_failed", user_id=user_id)
        await reply(STATS_FAILED_NOTICE)
        return None

    await reply(text)
    logger.info(
        "kudos_stats_sent",
        user_id=user_id,
        total_kudos=stats.total_kudos,
        since=stats.since.isoformat(),
    )
    return stats
