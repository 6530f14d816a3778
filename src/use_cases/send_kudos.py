"""Send kudos use cases.

Three entry points share one announce-then-record sequence:
- quick send from command text
- /kudos dispatch (quick send when the text is complete, modal otherwise)
- modal submission
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import pytz

from src.config.logging_config import get_logger
from src.domain.exceptions import (
    RateLimitError,
    RepositoryError,
    SlackAPIError,
    ValidationError,
)
from src.domain.models import KudosEvent
from src.domain.protocols import (
    KudosStoreProtocol,
    MemberDirectoryProtocol,
    SlackClientProtocol,
)
from src.services.kudos_modal import build_kudos_modal, parse_modal_submission
from src.services.kudos_renderer import (
    LOOKUP_FAILED_NOTICE,
    SEND_FAILED_NOTICE,
    render_announcement,
    render_rate_limit_notice,
)
from src.services.mention_parser import parse_mentions, parse_prefill
from src.services.rate_limiter import SubmissionRateLimiter

logger = get_logger(__name__)

PrivateReply = Callable[[str], Awaitable[None]]


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)


@dataclass
class KudosContext:
    """Process-wide collaborators shared by every handler invocation."""

    slack: SlackClientProtocol
    store: KudosStoreProtocol
    limiter: SubmissionRateLimiter
    directory: MemberDirectoryProtocol
    clock: Callable[[], datetime] = field(default=utc_now)


async def announce_and_record(
    ctx: KudosContext,
    *,
    sender_id: str,
    recipient_ids: list[str],
    message: str,
    channel_id: str,
) -> KudosEvent:
    """Post the public announcement, then append the event to the store.

    A store failure is logged and swallowed: the announcement is already
    visible and is not rolled back.

    Raises:
        SlackAPIError: The announcement could not be posted
        RateLimitError: Slack rate-limited the announcement
    """
    event = KudosEvent(
        timestamp=ctx.clock(),
        sender_id=sender_id,
        recipient_ids=tuple(recipient_ids),
        message=message,
        channel_id=channel_id,
    )

    await ctx.slack.post_message(
        channel_id, render_announcement(sender_id, recipient_ids, event.message)
    )

    try:
        await asyncio.to_thread(ctx.store.append, event)
    except RepositoryError as exc:
        logger.error(
            "kudos_store_append_failed",
            sender_id=sender_id,
            channel_id=channel_id,
            error=str(exc),
        )
    else:
        logger.info(
            "kudos_recorded",
            sender_id=sender_id,
            recipients=len(recipient_ids),
            channel_id=channel_id,
        )
    return event


async def send_kudos_from_text(
    ctx: KudosContext,
    *,
    user_id: str,
    channel_id: str,
    text: str,
    reply: PrivateReply,
) -> KudosEvent | None:
    """Quick send: parse mentions from text and announce immediately.

    The submission slot is claimed before parsing, so a second command from
    the same user while this one awaits Slack is answered as busy.

    Args:
        ctx: Shared collaborators
        user_id: Sender
        channel_id: Channel the command was issued in
        text: Raw command text
        reply: Sends a private message to the sender

    Returns:
        Recorded event, or None when the kudos was rejected
    """
    with ctx.limiter.submission(user_id) as decision:
        if not decision.allowed:
            logger.info(
                "kudos_rate_limited",
                user_id=user_id,
                status=decision.status.value,
                remaining_ms=decision.remaining_ms,
            )
            await reply(render_rate_limit_notice(decision))
            return None

        try:
            parsed = await parse_mentions(text, ctx.directory)
        except ValidationError as exc:
            logger.info("kudos_validation_failed", user_id=user_id, error=str(exc))
            await reply(getattr(exc, "user_message", str(exc)))
            return None
        except Exception:
            logger.exception("kudos_user_lookup_failed", user_id=user_id)
            await reply(LOOKUP_FAILED_NOTICE)
            return None

        try:
            return await announce_and_record(
                ctx,
                sender_id=user_id,
                recipient_ids=parsed.recipient_ids,
                message=parsed.message,
                channel_id=channel_id,
            )
        except Exception:
            logger.exception("kudos_send_failed", user_id=user_id)
            await reply(SEND_FAILED_NOTICE)
            return None


async def handle_kudos_command(
    ctx: KudosContext,
    *,
    user_id: str,
    channel_id: str,
    text: str,
    trigger_id: str,
    reply: PrivateReply,
) -> KudosEvent | None:
    """Dispatch /kudos and /h5.

    Text naming recipients and a message is sent straight away. Anything
    less opens the modal, pre-filled with whatever could be resolved.

    Returns:
        Recorded event when sent directly, None when the modal was opened
        or the kudos was rejected
    """
    prefill = await parse_prefill(text, ctx.directory) if text.strip() else None

    if prefill is not None and prefill.is_complete:
        return await send_kudos_from_text(
            ctx, user_id=user_id, channel_id=channel_id, text=text, reply=reply
        )

    view = build_kudos_modal(
        user_id=user_id,
        channel_id=channel_id,
        recipient_ids=prefill.recipient_ids if prefill else None,
        message=prefill.message if prefill else "",
    )
    try:
        await ctx.slack.open_view(trigger_id, view)
    except (SlackAPIError, RateLimitError) as exc:
        logger.error("kudos_modal_open_failed", user_id=user_id, error=str(exc))
    else:
        logger.info(
            "kudos_modal_opened",
            user_id=user_id,
            prefilled_recipients=len(prefill.recipient_ids) if prefill else 0,
        )
    return None


async def submit_kudos_modal(
    ctx: KudosContext, view: dict[str, Any]
) -> KudosEvent | None:
    """Handle a kudos modal submission.

    There is no private reply channel here, so every rejection is only
    logged: missing fields, busy or cooling-down senders, and Slack errors.

    Returns:
        Recorded event, or None when the submission was dropped
    """
    try:
        submission = parse_modal_submission(view)
    except ValidationError as exc:
        logger.warning("kudos_modal_invalid", error=str(exc))
        return None

    if not submission.recipient_ids or not submission.message:
        logger.info(
            "kudos_modal_incomplete",
            user_id=submission.user_id,
            recipients=len(submission.recipient_ids),
            has_message=bool(submission.message),
        )
        return None

    with ctx.limiter.submission(submission.user_id) as decision:
        if not decision.allowed:
            logger.info(
                "kudos_modal_rate_limited",
                user_id=submission.user_id,
                status=decision.status.value,
                remaining_ms=decision.remaining_ms,
            )
            return None

        try:
            return await announce_and_record(
                ctx,
                sender_id=submission.user_id,
                recipient_ids=submission.recipient_ids,
                message=submission.message,
                channel_id=submission.channel_id,
            )
        except (SlackAPIError, RateLimitError) as exc:
            logger.error(
                "kudos_modal_send_failed",
                user_id=submission.user_id,
                error=str(exc),
            )
            return None
