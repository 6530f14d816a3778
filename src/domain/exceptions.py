"""Custom exception hierarchy for the Kudos Bot.

Following error taxonomy: retryable, non-retryable, validation, rate-limit.
Nothing in the bot retries; the split only classifies failures for logging.
"""


class KudosBotError(Exception):
    """Base exception for all application errors."""

    pass


class RetryableError(KudosBotError):
    """Errors caused by a collaborator (network issues, temporary failures)."""

    pass


class NonRetryableError(KudosBotError):
    """Errors that repeat on every attempt (validation, auth, logic errors)."""

    pass


class ValidationError(NonRetryableError):
    """User input could not be turned into a kudos."""

    user_message = "⚠️ Invalid kudos."


class NoRecipientsError(ValidationError):
    """Command text mentions nobody."""

    user_message = "⚠️ Please mention at least one user."

    def __init__(self) -> None:
        super().__init__("No recipients mentioned")


class EmptyMessageError(ValidationError):
    """Recipients were found but no message follows them."""

    user_message = "⚠️ Please include a message."

    def __init__(self) -> None:
        super().__init__("Kudos message is empty")


class UnknownUserError(ValidationError):
    """A plain @name mention matched no workspace member."""

    def __init__(self, username: str) -> None:
        self.username = username
        self.user_message = f'⚠️ Couldn\'t find user "@{username}".'
        super().__init__(f"Unknown user: @{username}")


class AuthorizationError(NonRetryableError):
    """Requester is not on the stats allow-list."""

    pass


class RateLimitError(RetryableError):
    """Slack API rate limit exceeded."""

    def __init__(self, retry_after: int | None = None) -> None:
        """Initialize with optional retry_after seconds."""
        self.retry_after = retry_after
        super().__init__(f"Rate limit exceeded. Retry after: {retry_after}s")


class SlackAPIError(RetryableError):
    """Slack API communication errors."""

    pass


class RepositoryError(RetryableError):
    """Database/storage errors."""

    pass
