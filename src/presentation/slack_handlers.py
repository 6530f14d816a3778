"""Slack Bolt listeners for the kudos commands and modal."""

from typing import Any

from slack_bolt.async_app import AsyncAck, AsyncApp, AsyncRespond

from src.config.logging_config import bind_context, clear_context, get_logger
from src.config.settings import Settings
from src.domain.kudos_constants import (
    KUDOS_COMMANDS,
    KUDOS_MODAL_CALLBACK_ID,
    STATS_COMMAND,
)
from src.use_cases.kudos_stats import kudos_stats_use_case
from src.use_cases.send_kudos import (
    KudosContext,
    PrivateReply,
    handle_kudos_command,
    submit_kudos_modal,
)

logger = get_logger(__name__)


def ephemeral_reply(respond: AsyncRespond) -> PrivateReply:
    """Wrap Bolt's respond() so use cases only deal with text."""

    async def _reply(text: str) -> None:
        await respond(text=text, response_type="ephemeral")

    return _reply


def register_handlers(app: AsyncApp, ctx: KudosContext, settings: Settings) -> None:
    """Attach command, view, and error listeners to the Bolt app."""

    async def on_kudos_command(
        ack: AsyncAck, command: dict[str, Any], respond: AsyncRespond
    ) -> None:
        await ack()
        clear_context()
        bind_context(user_id=command["user_id"], command=command.get("command"))

        await handle_kudos_command(
            ctx,
            user_id=command["user_id"],
            channel_id=command["channel_id"],
            text=command.get("text") or "",
            trigger_id=command["trigger_id"],
            reply=ephemeral_reply(respond),
        )

    async def on_kudos_modal_submit(ack: AsyncAck, view: dict[str, Any]) -> None:
        await ack()
        clear_context()
        bind_context(callback_id=KUDOS_MODAL_CALLBACK_ID)

        await submit_kudos_modal(ctx, view)

    async def on_stats_command(
        ack: AsyncAck, command: dict[str, Any], respond: AsyncRespond
    ) -> None:
        await ack()
        clear_context()
        bind_context(user_id=command["user_id"], command=STATS_COMMAND)

        await kudos_stats_use_case(
            ctx,
            settings,
            user_id=command["user_id"],
            reply=ephemeral_reply(respond),
        )

    async def on_error(error: Exception, body: dict[str, Any]) -> None:
        logger.error(
            "slack_listener_failed",
            error=str(error),
            error_type=type(error).__name__,
            request_type=body.get("type"),
            command=body.get("command"),
        )

    for command_name in KUDOS_COMMANDS:
        app.command(command_name)(on_kudos_command)
    app.view(KUDOS_MODAL_CALLBACK_ID)(on_kudos_modal_submit)
    app.command(STATS_COMMAND)(on_stats_command)
    app.error(on_error)

    logger.info(
        "slack_handlers_registered",
        commands=[*KUDOS_COMMANDS, STATS_COMMAND],
        views=[KUDOS_MODAL_CALLBACK_ID],
    )
