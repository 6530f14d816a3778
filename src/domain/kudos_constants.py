"""Domain constants for kudos submission and reporting."""

from typing import Final

# Submission throttling
SUBMISSION_COOLDOWN_MS: Final[int] = 3000

# Workspace member list freshness
DIRECTORY_CACHE_TTL_SECONDS: Final[float] = 5 * 60

# Leaderboard
STATS_MONTHS_BACK: Final[int] = 3
STATS_TOP_N: Final[int] = 5
LEADERBOARD_MEDALS: Final[tuple[str, ...]] = ("🥇", "🥈", "🥉")

# Slash commands and modal identifiers
KUDOS_COMMANDS: Final[tuple[str, ...]] = ("/kudos", "/h5")
STATS_COMMAND: Final[str] = "/stats"
KUDOS_MODAL_CALLBACK_ID: Final[str] = "kudos_modal"
RECIPIENTS_BLOCK_ID: Final[str] = "recipients_block"
RECIPIENTS_ACTION_ID: Final[str] = "recipients_select"
MESSAGE_BLOCK_ID: Final[str] = "message_block"
MESSAGE_ACTION_ID: Final[str] = "message_input"

__all__ = [
    "DIRECTORY_CACHE_TTL_SECONDS",
    "KUDOS_COMMANDS",
    "KUDOS_MODAL_CALLBACK_ID",
    "LEADERBOARD_MEDALS",
    "MESSAGE_ACTION_ID",
    "MESSAGE_BLOCK_ID",
    "RECIPIENTS_ACTION_ID",
    "RECIPIENTS_BLOCK_ID",
    "STATS_COMMAND",
    "STATS_MONTHS_BACK",
    "STATS_TOP_N",
    "SUBMISSION_COOLDOWN_MS",
]
