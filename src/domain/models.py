"""Domain models for the Kudos Bot.

All models use Pydantic v2 for validation and serialization.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Any

import pytz
from pydantic import BaseModel, ConfigDict, Field, field_validator


class KudosEvent(BaseModel):
    """One recorded act of public recognition."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(..., description="When the kudos was sent (UTC)")
    sender_id: str = Field(..., min_length=1, description="Slack user ID of giver")
    recipient_ids: tuple[str, ...] = Field(
        ..., min_length=1, description="Slack user IDs of receivers, in order"
    )
    message: str = Field(..., description="Kudos message text")
    channel_id: str = Field(..., description="Channel the kudos was announced in")

    @field_validator("timestamp")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Store naive timestamps as UTC and normalize aware ones to UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=pytz.UTC)
        return v.astimezone(pytz.UTC)

    @field_validator("message")
    @classmethod
    def ensure_message_not_blank(cls, v: str) -> str:
        """Reject whitespace-only messages."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("message must not be blank")
        return stripped


class SlackMember(BaseModel):
    """Workspace member as returned by users.list."""

    id: str = Field(..., description="Slack user ID")
    name: str = Field(default="", description="Login handle")
    real_name: str = Field(default="", description="Full name")
    display_name: str = Field(default="", description="Profile display name")
    display_name_normalized: str = Field(
        default="", description="Display name without special characters"
    )
    deleted: bool = Field(default=False, description="Deactivated account")
    is_bot: bool = Field(default=False, description="Bot user")

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "SlackMember":
        """Build a member from a raw users.list / users.info payload."""
        profile = payload.get("profile") or {}
        return cls(
            id=str(payload.get("id", "")),
            name=payload.get("name") or "",
            real_name=payload.get("real_name") or profile.get("real_name") or "",
            display_name=profile.get("display_name") or "",
            display_name_normalized=profile.get("display_name_normalized") or "",
            deleted=bool(payload.get("deleted", False)),
            is_bot=bool(payload.get("is_bot", False)),
        )

    def matches(self, username: str, *, include_normalized: bool = False) -> bool:
        """Exact, case-sensitive match on login or display name."""
        if username == self.name or username == self.display_name:
            return True
        return include_normalized and username == self.display_name_normalized


class ParsedMentions(BaseModel):
    """Recipients and trailing message extracted from command text."""

    recipient_ids: list[str] = Field(default_factory=list)
    message: str = Field(default="")

    @property
    def is_complete(self) -> bool:
        """True when the text can be sent without opening the modal."""
        return bool(self.recipient_ids) and bool(self.message)


class RateLimitStatus(str, Enum):
    """Outcome of a submission slot request."""

    ALLOWED = "allowed"
    BUSY = "busy"
    COOLING_DOWN = "cooling_down"


class RateLimitDecision(BaseModel):
    """Result of RateLimiter.try_acquire."""

    model_config = ConfigDict(frozen=True)

    status: RateLimitStatus
    remaining_ms: int = Field(default=0, ge=0)

    @property
    def allowed(self) -> bool:
        return self.status == RateLimitStatus.ALLOWED

    @property
    def remaining_seconds(self) -> int:
        """Remaining cooldown rounded up to whole seconds for display."""
        return math.ceil(self.remaining_ms / 1000)


class LeaderboardEntry(BaseModel):
    """One ranked row of a leaderboard."""

    user_id: str
    count: int = Field(..., ge=1)


class KudosStats(BaseModel):
    """Aggregated leaderboard over a trailing window."""

    since: datetime = Field(..., description="Inclusive window start (UTC)")
    total_kudos: int = Field(default=0, ge=0)
    top_givers: list[LeaderboardEntry] = Field(default_factory=list)
    top_receivers: list[LeaderboardEntry] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.total_kudos == 0
