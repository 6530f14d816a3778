"""Kudos Bot entry point.

Runs the Slack Bolt app:
- Socket Mode when SLACK_APP_TOKEN is set
- HTTP on PORT otherwise (requires SLACK_SIGNING_SECRET)
"""

import asyncio
import sys

from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.async_app import AsyncApp

from src.adapters.repository_factory import create_kudos_store
from src.adapters.slack_client import SlackClient
from src.adapters.slack_directory_cache import SlackDirectoryCache
from src.config.logging_config import get_logger, setup_logging
from src.config.settings import Settings, get_settings
from src.domain.exceptions import RepositoryError
from src.presentation.slack_handlers import register_handlers
from src.services.rate_limiter import SubmissionRateLimiter
from src.use_cases.send_kudos import KudosContext

logger = get_logger(__name__)


def build_app(settings: Settings) -> AsyncApp:
    """Wire the store, limiter, directory cache, and listeners into a Bolt app.

    Raises:
        RepositoryError: The kudos database could not be opened
    """
    signing_secret = (
        settings.slack_signing_secret.get_secret_value()
        if settings.slack_signing_secret
        else None
    )
    app = AsyncApp(
        token=settings.slack_bot_token.get_secret_value(),
        signing_secret=signing_secret,
    )

    slack = SlackClient(client=app.client)
    ctx = KudosContext(
        slack=slack,
        store=create_kudos_store(settings),
        limiter=SubmissionRateLimiter(settings.cooldown_ms),
        directory=SlackDirectoryCache(
            slack.list_members, ttl_seconds=settings.directory_cache_ttl_seconds
        ),
    )
    register_handlers(app, ctx, settings)
    return app


async def run_socket_mode(settings: Settings, app_token: str) -> None:
    app = build_app(settings)
    handler = AsyncSocketModeHandler(app, app_token)
    await handler.start_async()


def main() -> int:
    settings = get_settings()
    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)

    if settings.slack_app_token is None and settings.slack_signing_secret is None:
        logger.error(
            "kudos_bot_misconfigured",
            reason="set SLACK_APP_TOKEN (Socket Mode) or SLACK_SIGNING_SECRET (HTTP)",
        )
        return 1

    try:
        if settings.slack_app_token is not None:
            logger.info(
                "kudos_bot_starting", mode="socket", db_path=settings.kudos_db_path
            )
            asyncio.run(
                run_socket_mode(settings, settings.slack_app_token.get_secret_value())
            )
        else:
            logger.info(
                "kudos_bot_starting",
                mode="http",
                port=settings.port,
                db_path=settings.kudos_db_path,
            )
            build_app(settings).start(port=settings.port)
    except RepositoryError as exc:
        logger.error("kudos_bot_start_failed", error=str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
