"""Protocol definitions for dependency inversion.

These abstract interfaces define contracts that adapters must implement.
"""

from datetime import datetime
from typing import Any, Protocol

from src.domain.models import KudosEvent, SlackMember


class KudosStoreProtocol(Protocol):
    """Append-only log of kudos events."""

    def append(self, event: KudosEvent) -> None:
        """Persist one kudos event.

        Args:
            event: Event to store

        Raises:
            RepositoryError: On storage errors
        """
        ...

    def query_recent_since(self, cutoff: datetime) -> list[KudosEvent]:
        """Return events with timestamp >= cutoff, newest first.

        Args:
            cutoff: Inclusive lower bound (UTC)

        Returns:
            Matching events

        Raises:
            RepositoryError: On storage errors
        """
        ...

    def count(self) -> int:
        """Return the total number of stored events."""
        ...


class MemberDirectoryProtocol(Protocol):
    """Source of workspace members for @name resolution."""

    async def get(self, now: float | None = None) -> list[SlackMember]:
        """Return the workspace member list.

        Raises:
            SlackAPIError: On API communication errors
        """
        ...


class SlackClientProtocol(Protocol):
    """Protocol for the Slack Web API calls the bot makes."""

    async def post_message(self, channel_id: str, text: str) -> str:
        """Post a public message and return its timestamp.

        Raises:
            SlackAPIError: On API communication errors
            RateLimitError: On rate limit exceeded
        """
        ...

    async def post_ephemeral(self, channel_id: str, user_id: str, text: str) -> None:
        """Post a message visible only to one user."""
        ...

    async def open_view(self, trigger_id: str, view: dict[str, Any]) -> None:
        """Open a modal view."""
        ...

    async def list_members(self) -> list[SlackMember]:
        """Fetch every workspace member (all pages)."""
        ...

    async def get_user_name(self, user_id: str) -> str | None:
        """Return real name (or login) for a user, None if unknown."""
        ...
