"""Slack Web API client adapter.

Thin async wrapper over slack_sdk's AsyncWebClient that converts SDK errors
into the domain exception taxonomy. Calls are never retried.
"""

import asyncio
from typing import Any, Final, NoReturn, cast

import aiohttp
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from src.config.logging_config import get_logger
from src.domain.exceptions import RateLimitError, SlackAPIError
from src.domain.models import SlackMember

logger = get_logger(__name__)

USERS_LIST_PAGE_SIZE: Final[int] = 200
DEFAULT_RETRY_AFTER_SECONDS: Final[int] = 60
# Raised by the aiohttp transport before Slack returns a response
TRANSPORT_ERRORS: Final = (aiohttp.ClientError, asyncio.TimeoutError)


class SlackClient:
    """Slack API client used by the kudos handlers."""

    def __init__(self, bot_token: str = "", *, client: Any | None = None) -> None:
        """Initialize Slack client.

        Args:
            bot_token: Slack bot user OAuth token
            client: Pre-built AsyncWebClient (Bolt's, or a stub in tests)
        """
        self.client = client or AsyncWebClient(token=bot_token)

    async def post_message(self, channel_id: str, text: str) -> str:
        """Post a public message to a channel.

        Args:
            channel_id: Target channel ID
            text: mrkdwn text

        Returns:
            Message timestamp

        Raises:
            SlackAPIError: On API communication errors
            RateLimitError: On rate limit exceeded
        """
        try:
            response = await self.client.chat_postMessage(channel=channel_id, text=text)
        except SlackApiError as e:
            self._raise_for_error(e, action="chat_postMessage")
        except TRANSPORT_ERRORS as e:
            self._raise_transport_error(e, action="chat_postMessage")

        data = self._extract_data(response)
        if not data.get("ok"):
            raise SlackAPIError(f"Failed to post message: {data.get('error')}")
        return cast(str, data.get("ts", ""))

    async def post_ephemeral(self, channel_id: str, user_id: str, text: str) -> None:
        """Post a message only user_id can see.

        Raises:
            SlackAPIError: On API communication errors
            RateLimitError: On rate limit exceeded
        """
        try:
            await self.client.chat_postEphemeral(
                channel=channel_id, user=user_id, text=text
            )
        except SlackApiError as e:
            self._raise_for_error(e, action="chat_postEphemeral")
        except TRANSPORT_ERRORS as e:
            self._raise_transport_error(e, action="chat_postEphemeral")

    async def open_view(self, trigger_id: str, view: dict[str, Any]) -> None:
        """Open a modal for the user who triggered the command.

        Raises:
            SlackAPIError: On API communication errors
        """
        try:
            await self.client.views_open(trigger_id=trigger_id, view=view)
        except SlackApiError as e:
            self._raise_for_error(e, action="views_open")
        except TRANSPORT_ERRORS as e:
            self._raise_transport_error(e, action="views_open")

    async def list_members(self) -> list[SlackMember]:
        """Fetch every workspace member, following users.list pagination.

        Raises:
            SlackAPIError: On API communication errors
            RateLimitError: On rate limit exceeded
        """
        members: list[SlackMember] = []
        cursor: str | None = None

        while True:
            params: dict[str, Any] = {"limit": USERS_LIST_PAGE_SIZE}
            if cursor:
                params["cursor"] = cursor

            try:
                response = await self.client.users_list(**params)
            except SlackApiError as e:
                self._raise_for_error(e, action="users_list")
            except TRANSPORT_ERRORS as e:
                self._raise_transport_error(e, action="users_list")

            data = self._extract_data(response)
            if not data.get("ok", False):
                raise SlackAPIError(f"Failed to list users: {data.get('error')}")

            for member in data.get("members", []):
                if member.get("id"):
                    members.append(SlackMember.from_api(member))

            metadata = data.get("response_metadata")
            cursor = metadata.get("next_cursor") if isinstance(metadata, dict) else None
            if not cursor:
                break

        return members

    async def get_user_name(self, user_id: str) -> str | None:
        """Return the user's real name, falling back to the login name.

        Returns:
            Name, or None when Slack does not know the user or cannot be
            reached
        """
        try:
            response = await self.client.users_info(user=user_id)
        except (SlackApiError, *TRANSPORT_ERRORS) as e:
            logger.warning(
                "slack_user_fetch_failed",
                user_id=user_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        data = self._extract_data(response)
        if not data.get("ok", False):
            logger.warning(
                "slack_user_fetch_failed", user_id=user_id, error=data.get("error")
            )
            return None

        user = cast(dict[str, Any], data.get("user") or {})
        return cast(str | None, user.get("real_name") or user.get("name") or None)

    def _extract_data(self, response: Any) -> dict[str, Any]:
        if hasattr(response, "data"):
            return cast(dict[str, Any], response.data)
        return cast(dict[str, Any], response)

    def _raise_for_error(self, error: SlackApiError, *, action: str) -> NoReturn:
        response = getattr(error, "response", None)
        error_code = response.get("error") if response is not None else None
        if error_code == "ratelimited":
            headers = getattr(response, "headers", {}) or {}
            retry_after = int(headers.get("Retry-After", DEFAULT_RETRY_AFTER_SECONDS))
            logger.warning(
                "slack_rate_limited", action=action, retry_after_seconds=retry_after
            )
            raise RateLimitError(retry_after=retry_after) from error

        logger.warning("slack_api_error", action=action, error=str(error))
        raise SlackAPIError(f"{action} failed: {error}") from error

    def _raise_transport_error(self, error: BaseException, *, action: str) -> NoReturn:
        logger.warning(
            "slack_transport_error",
            action=action,
            error=str(error),
            error_type=type(error).__name__,
        )
        raise SlackAPIError(f"{action} failed: {type(error).__name__}") from error
