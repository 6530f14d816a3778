"""Mention parsing for kudos command text.

Handles:
- Slack-formatted mentions (<@U123> and <@U123|name>)
- Plain @name mentions resolved through the member directory
- Trailing message extraction after the last mention
"""

import re

from src.config.logging_config import get_logger
from src.domain.exceptions import (
    EmptyMessageError,
    NoRecipientsError,
    UnknownUserError,
)
from src.domain.models import ParsedMentions, SlackMember
from src.domain.protocols import MemberDirectoryProtocol

logger = get_logger(__name__)

FORMATTED_MENTION_RE = re.compile(r"<@([A-Z0-9]+)(\|[^>]+)?>")
PLAIN_MENTION_RE = re.compile(r"@(\w+)")


def find_member(
    members: list[SlackMember], username: str, *, include_normalized: bool = False
) -> SlackMember | None:
    """Return the first member whose login or display name equals username."""
    for member in members:
        if member.matches(username, include_normalized=include_normalized):
            return member
    return None


def text_after(text: str, end: int) -> str:
    """Return the trimmed text following position end.

    Example:
        >>> text_after("<@U1> thanks!", 5)
        'thanks!'
    """
    return text[end:].strip()


def extract_formatted_mentions(text: str) -> ParsedMentions:
    """Extract Slack-formatted mentions and the message after the last one.

    Duplicates are kept. The message is a plain suffix slice after the last
    mention, so any text between mentions is dropped.

    Args:
        text: Raw command text

    Returns:
        ParsedMentions (empty recipient list if no formatted mentions)

    Example:
        >>> extract_formatted_mentions("<@U1> <@U2|bob> great demo").recipient_ids
        ['U1', 'U2']
    """
    matches = list(FORMATTED_MENTION_RE.finditer(text))
    if not matches:
        return ParsedMentions()

    return ParsedMentions(
        recipient_ids=[match.group(1) for match in matches],
        message=text_after(text, matches[-1].end()),
    )


def extract_plain_mentions(text: str) -> tuple[list[str], str]:
    """Extract plain @name tokens and the message after the last one.

    Example:
        >>> extract_plain_mentions("@alice @bob thanks")
        (['alice', 'bob'], 'thanks')
    """
    matches = list(PLAIN_MENTION_RE.finditer(text))
    if not matches:
        return [], ""
    return [match.group(1) for match in matches], text_after(text, matches[-1].end())


async def parse_mentions(
    text: str, directory: MemberDirectoryProtocol
) -> ParsedMentions:
    """Parse kudos command text strictly.

    Formatted mentions win; plain @names are only consulted when there are
    none, and every plain name must resolve or the whole parse fails.

    Args:
        text: Raw command text
        directory: Member directory used for plain @name resolution

    Returns:
        ParsedMentions with at least one recipient and a non-empty message

    Raises:
        NoRecipientsError: No mentions of either form
        UnknownUserError: A plain @name matched no member
        EmptyMessageError: Nothing follows the last mention
        SlackAPIError: The directory lookup failed
        RateLimitError: Slack rate-limited the directory lookup
    """
    text = text.strip()
    parsed = extract_formatted_mentions(text)

    if not parsed.recipient_ids:
        usernames, message = extract_plain_mentions(text)
        if usernames:
            members = await directory.get()
            recipient_ids: list[str] = []
            for username in usernames:
                member = find_member(members, username)
                if member is None:
                    raise UnknownUserError(username)
                recipient_ids.append(member.id)
            parsed = ParsedMentions(recipient_ids=recipient_ids, message=message)

    if not parsed.recipient_ids:
        raise NoRecipientsError()
    if not parsed.message:
        raise EmptyMessageError()
    return parsed


async def parse_prefill(
    text: str, directory: MemberDirectoryProtocol
) -> ParsedMentions:
    """Best-effort parse used to pre-populate the kudos modal.

    Never raises for user input: unknown names are skipped and a failed
    directory lookup yields no recipients.
    """
    text = text.strip()
    parsed = extract_formatted_mentions(text)
    if parsed.recipient_ids:
        return parsed

    usernames, message = extract_plain_mentions(text)
    if not usernames:
        return ParsedMentions(message=text)

    try:
        members = await directory.get()
    except Exception as exc:
        logger.warning(
            "prefill_directory_lookup_failed",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return ParsedMentions(message=message)

    recipient_ids: list[str] = []
    for username in usernames:
        member = find_member(members, username, include_normalized=True)
        if member is None:
            logger.debug("prefill_user_not_found", username=username)
            continue
        recipient_ids.append(member.id)

    return ParsedMentions(recipient_ids=recipient_ids, message=message)
