"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

import pytest
import pytz

from src.adapters.slack_directory_cache import SlackDirectoryCache
from src.adapters.sqlite_kudos_store import SQLiteKudosStore
from src.config.settings import Settings
from src.domain.exceptions import SlackAPIError
from src.domain.models import KudosEvent, SlackMember
from src.services.rate_limiter import SubmissionRateLimiter
from src.use_cases.send_kudos import KudosContext

FIXED_NOW = datetime(2025, 10, 15, 12, 0, tzinfo=pytz.UTC)


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class StubSlackClient:
    """Records Slack calls made by the use cases."""

    def __init__(self, members: list[SlackMember] | None = None) -> None:
        self.members = members or []
        self.names: dict[str, str] = {}
        self.posted: list[tuple[str, str]] = []
        self.ephemerals: list[tuple[str, str, str]] = []
        self.opened_views: list[tuple[str, dict[str, Any]]] = []
        self.list_members_calls = 0
        self.fail_post = False
        self.fail_list = False
        self.fail_open = False

    async def post_message(self, channel_id: str, text: str) -> str:
        if self.fail_post:
            raise SlackAPIError("chat_postMessage failed: channel_not_found")
        self.posted.append((channel_id, text))
        return "1728000000.000100"

    async def post_ephemeral(self, channel_id: str, user_id: str, text: str) -> None:
        self.ephemerals.append((channel_id, user_id, text))

    async def open_view(self, trigger_id: str, view: dict[str, Any]) -> None:
        if self.fail_open:
            raise SlackAPIError("views_open failed: expired_trigger_id")
        self.opened_views.append((trigger_id, view))

    async def list_members(self) -> list[SlackMember]:
        self.list_members_calls += 1
        if self.fail_list:
            raise SlackAPIError("users_list failed: invalid_auth")
        return list(self.members)

    async def get_user_name(self, user_id: str) -> str | None:
        return self.names.get(user_id)


class ReplyRecorder:
    """Collects private replies sent to the requester."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    async def __call__(self, text: str) -> None:
        self.messages.append(text)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        slack_bot_token="xoxb-test",
        db_path=str(tmp_path / "kudos.db"),
    )


@pytest.fixture
def store(tmp_path: Path) -> SQLiteKudosStore:
    return SQLiteKudosStore(db_path=str(tmp_path / "kudos.db"))


@pytest.fixture
def members() -> list[SlackMember]:
    return [
        SlackMember(
            id="U01ALICE",
            name="alice",
            real_name="Alice Anders",
            display_name="Ali",
            display_name_normalized="Ali",
        ),
        SlackMember(
            id="U02BOB",
            name="bob",
            real_name="Bob Brown",
            display_name="bobby",
            display_name_normalized="bobby",
        ),
        SlackMember(
            id="U03CAROL",
            name="carol",
            real_name="Carol Chen",
            display_name="Carol_C",
            display_name_normalized="carolc",
        ),
    ]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def slack(members: list[SlackMember]) -> StubSlackClient:
    return StubSlackClient(members)


@pytest.fixture
def directory(slack: StubSlackClient, clock: FakeClock) -> SlackDirectoryCache:
    return SlackDirectoryCache(slack.list_members, clock=clock)


@pytest.fixture
def limiter(clock: FakeClock) -> SubmissionRateLimiter:
    return SubmissionRateLimiter(3000, clock=clock)


@pytest.fixture
def kudos_ctx(
    slack: StubSlackClient,
    store: SQLiteKudosStore,
    limiter: SubmissionRateLimiter,
    directory: SlackDirectoryCache,
) -> KudosContext:
    return KudosContext(
        slack=slack,
        store=store,
        limiter=limiter,
        directory=directory,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def reply() -> ReplyRecorder:
    return ReplyRecorder()


def make_event(
    sender_id: str = "U01ALICE",
    recipient_ids: tuple[str, ...] = ("U02BOB",),
    *,
    timestamp: datetime = FIXED_NOW,
    message: str = "Thanks for the help!",
    channel_id: str = "C123456",
) -> KudosEvent:
    """Helper to build a kudos event."""
    return KudosEvent(
        timestamp=timestamp,
        sender_id=sender_id,
        recipient_ids=recipient_ids,
        message=message,
        channel_id=channel_id,
    )
