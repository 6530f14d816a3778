"""Per-user submission throttling.

Two guards per user: an in-flight marker held for the whole handler run,
and a cooldown measured from the start of the previous accepted submission.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from src.config.logging_config import get_logger
from src.domain.kudos_constants import SUBMISSION_COOLDOWN_MS
from src.domain.models import RateLimitDecision, RateLimitStatus

__all__ = ["SubmissionRateLimiter"]

logger = get_logger(__name__)


class SubmissionRateLimiter:
    """In-memory cooldown map plus in-flight set, owned by the process.

    All state changes happen synchronously, so on a single event loop a
    second request from the same user arriving while the first one awaits
    Slack or the store always observes the in-flight marker.
    """

    def __init__(
        self,
        cooldown_ms: int = SUBMISSION_COOLDOWN_MS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if cooldown_ms < 0:
            raise ValueError("cooldown_ms must not be negative")
        self._cooldown_ms = cooldown_ms
        self._clock = clock
        self._last_submission: dict[str, float] = {}
        self._in_flight: set[str] = set()

    def is_in_flight(self, user_id: str) -> bool:
        return user_id in self._in_flight

    def try_acquire(self, user_id: str, now: float | None = None) -> RateLimitDecision:
        """Claim a submission slot for user_id.

        Args:
            user_id: Slack user ID
            now: Current time in seconds from the limiter clock

        Returns:
            ALLOWED (slot claimed), BUSY, or COOLING_DOWN with remaining_ms
        """
        current = self._clock() if now is None else now

        if user_id in self._in_flight:
            return RateLimitDecision(status=RateLimitStatus.BUSY)

        last = self._last_submission.get(user_id)
        if last is not None:
            elapsed_ms = (current - last) * 1000
            if elapsed_ms < self._cooldown_ms:
                remaining_ms = max(1, math.ceil(self._cooldown_ms - elapsed_ms))
                return RateLimitDecision(
                    status=RateLimitStatus.COOLING_DOWN,
                    remaining_ms=min(remaining_ms, self._cooldown_ms),
                )

        self._in_flight.add(user_id)
        self._last_submission[user_id] = current
        return RateLimitDecision(status=RateLimitStatus.ALLOWED)

    def release(self, user_id: str) -> None:
        """Drop the in-flight marker; the cooldown keeps running."""
        self._in_flight.discard(user_id)

    @contextmanager
    def submission(
        self, user_id: str, now: float | None = None
    ) -> Iterator[RateLimitDecision]:
        """Scoped slot: yields the decision and releases on every exit path.

        Example:
            >>> with limiter.submission("U123") as decision:
            ...     if decision.allowed:
            ...         await send()
        """
        decision = self.try_acquire(user_id, now)
        if not decision.allowed:
            logger.debug(
                "submission_rejected",
                user_id=user_id,
                status=decision.status.value,
                remaining_ms=decision.remaining_ms,
            )
        try:
            yield decision
        finally:
            if decision.allowed:
                self.release(user_id)
