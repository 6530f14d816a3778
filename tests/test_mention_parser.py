"""Tests for kudos mention parsing."""

import pytest

from src.adapters.slack_directory_cache import SlackDirectoryCache
from src.domain.exceptions import (
    EmptyMessageError,
    NoRecipientsError,
    SlackAPIError,
    UnknownUserError,
)
from src.domain.models import SlackMember
from src.services.mention_parser import (
    extract_formatted_mentions,
    extract_plain_mentions,
    find_member,
    parse_mentions,
    parse_prefill,
)
from tests.conftest import FakeClock, StubSlackClient


def test_formatted_mentions_in_order_with_trailing_message() -> None:
    parsed = extract_formatted_mentions("<@U1> <@U2|bob> <@U3>   shipped the release! ")

    assert parsed.recipient_ids == ["U1", "U2", "U3"]
    assert parsed.message == "shipped the release!"


def test_duplicate_mentions_are_preserved() -> None:
    parsed = extract_formatted_mentions("<@U1> <@U1> thanks")

    assert parsed.recipient_ids == ["U1", "U1"]


def test_message_is_suffix_after_last_mention() -> None:
    parsed = extract_formatted_mentions("thanks <@U1> for the review and <@U2> too")

    assert parsed.recipient_ids == ["U1", "U2"]
    assert parsed.message == "too"


def test_no_formatted_mentions_returns_empty() -> None:
    parsed = extract_formatted_mentions("no mentions here")

    assert parsed.recipient_ids == []
    assert parsed.message == ""


def test_plain_mentions_extracted() -> None:
    assert extract_plain_mentions("@alice @bob great work") == (
        ["alice", "bob"],
        "great work",
    )
    assert extract_plain_mentions("nothing") == ([], "")


@pytest.mark.asyncio
async def test_parse_formatted_mentions_skips_directory(
    directory: SlackDirectoryCache, slack: StubSlackClient
) -> None:
    parsed = await parse_mentions("<@U01ALICE> nice demo", directory)

    assert parsed.recipient_ids == ["U01ALICE"]
    assert parsed.message == "nice demo"
    assert slack.list_members_calls == 0


@pytest.mark.asyncio
async def test_parse_plain_mentions_resolves_login_and_display_name(
    directory: SlackDirectoryCache,
) -> None:
    parsed = await parse_mentions("@alice @bobby thanks for covering", directory)

    assert parsed.recipient_ids == ["U01ALICE", "U02BOB"]
    assert parsed.message == "thanks for covering"


@pytest.mark.asyncio
async def test_parse_plain_mention_is_case_sensitive(
    directory: SlackDirectoryCache,
) -> None:
    with pytest.raises(UnknownUserError) as exc_info:
        await parse_mentions("@Alice thanks", directory)

    assert exc_info.value.username == "Alice"
    assert '"@Alice"' in exc_info.value.user_message


@pytest.mark.asyncio
async def test_unknown_plain_mention_discards_partial_resolution(
    directory: SlackDirectoryCache,
) -> None:
    with pytest.raises(UnknownUserError):
        await parse_mentions("@alice @nobody thanks", directory)


@pytest.mark.asyncio
async def test_strict_parse_ignores_normalized_display_name(
    directory: SlackDirectoryCache,
) -> None:
    with pytest.raises(UnknownUserError):
        await parse_mentions("@carolc thanks", directory)


@pytest.mark.asyncio
async def test_no_mentions_raises_no_recipients(
    directory: SlackDirectoryCache,
) -> None:
    with pytest.raises(NoRecipientsError):
        await parse_mentions("thanks everyone", directory)


@pytest.mark.asyncio
async def test_mentions_without_message_raise_empty_message(
    directory: SlackDirectoryCache,
) -> None:
    with pytest.raises(EmptyMessageError):
        await parse_mentions("<@U01ALICE>   ", directory)


@pytest.mark.asyncio
async def test_directory_failure_propagates(
    directory: SlackDirectoryCache, slack: StubSlackClient
) -> None:
    slack.fail_list = True

    with pytest.raises(SlackAPIError):
        await parse_mentions("@alice thanks", directory)


@pytest.mark.asyncio
async def test_prefill_skips_unknown_names_and_uses_normalized(
    directory: SlackDirectoryCache,
) -> None:
    parsed = await parse_prefill("@alice @nobody @carolc", directory)

    assert parsed.recipient_ids == ["U01ALICE", "U03CAROL"]
    assert parsed.message == ""
    assert not parsed.is_complete


@pytest.mark.asyncio
async def test_prefill_without_mentions_keeps_text_as_message(
    directory: SlackDirectoryCache,
) -> None:
    parsed = await parse_prefill("great sprint everyone", directory)

    assert parsed.recipient_ids == []
    assert parsed.message == "great sprint everyone"


@pytest.mark.asyncio
async def test_prefill_survives_directory_failure(
    directory: SlackDirectoryCache, slack: StubSlackClient
) -> None:
    slack.fail_list = True

    parsed = await parse_prefill("@alice thanks", directory)

    assert parsed.recipient_ids == []
    assert parsed.message == "thanks"


@pytest.mark.asyncio
async def test_prefill_survives_directory_timeout(clock: FakeClock) -> None:
    async def timed_out() -> list[SlackMember]:
        raise TimeoutError("users.list timed out")

    parsed = await parse_prefill(
        "@alice thanks", SlackDirectoryCache(timed_out, clock=clock)
    )

    assert parsed.recipient_ids == []
    assert parsed.message == "thanks"


def test_find_member_matches_login_then_display(members: list[SlackMember]) -> None:
    assert find_member(members, "bob") == members[1]
    assert find_member(members, "Ali") == members[0]
    assert find_member(members, "carolc") is None
    assert find_member(members, "carolc", include_normalized=True) == members[2]
