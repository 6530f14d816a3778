"""Time-bounded cache of the Slack workspace member list."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from src.config.logging_config import get_logger
from src.domain.kudos_constants import DIRECTORY_CACHE_TTL_SECONDS
from src.domain.models import SlackMember

__all__ = ["SlackDirectoryCache"]

logger = get_logger(__name__)

FetchMembersCallable = Callable[[], Awaitable[list[SlackMember]]]


class SlackDirectoryCache:
    """Single-slot member list cache with a fixed freshness window.

    Stale reads refetch lazily. Concurrent stale reads are not coalesced;
    each one triggers its own users.list fetch.
    """

    def __init__(
        self,
        fetch_members: FetchMembersCallable,
        *,
        ttl_seconds: float = DIRECTORY_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._fetch_members = fetch_members
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._members: list[SlackMember] | None = None
        self._fetched_at: float | None = None

    def is_fresh(self, now: float) -> bool:
        return (
            self._members is not None
            and self._fetched_at is not None
            and now - self._fetched_at < self._ttl_seconds
        )

    async def get(self, now: float | None = None) -> list[SlackMember]:
        """Return cached members, refetching once the window has passed.

        Raises:
            SlackAPIError: When the refresh fetch fails
        """
        current = self._clock() if now is None else now
        if self.is_fresh(current):
            return self._members or []

        members = await self._fetch_members()
        self._members = members
        self._fetched_at = current
        logger.info("slack_directory_refreshed", members=len(members))
        return members

    def invalidate(self) -> None:
        self._members = None
        self._fetched_at = None
