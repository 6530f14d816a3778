"""Block Kit modal for composing kudos, and parsing of its submission."""

import json
from dataclasses import dataclass
from typing import Any

from src.domain.exceptions import ValidationError
from src.domain.kudos_constants import (
    KUDOS_MODAL_CALLBACK_ID,
    MESSAGE_ACTION_ID,
    MESSAGE_BLOCK_ID,
    RECIPIENTS_ACTION_ID,
    RECIPIENTS_BLOCK_ID,
)


@dataclass(frozen=True)
class ModalSubmission:
    """Values submitted from the kudos modal."""

    user_id: str
    channel_id: str
    recipient_ids: list[str]
    message: str


def build_kudos_modal(
    *,
    user_id: str,
    channel_id: str,
    recipient_ids: list[str] | None = None,
    message: str = "",
) -> dict[str, Any]:
    """Build the kudos modal view.

    Args:
        user_id: Requesting user, carried in private_metadata
        channel_id: Channel to announce in, carried in private_metadata
        recipient_ids: Users to pre-select
        message: Text to pre-fill

    Returns:
        views.open payload
    """
    recipients_element: dict[str, Any] = {
        "type": "multi_users_select",
        "action_id": RECIPIENTS_ACTION_ID,
        "placeholder": {"type": "plain_text", "text": "Select people"},
    }
    if recipient_ids:
        # Selection is a set; repeated mentions collapse to one
        recipients_element["initial_users"] = list(dict.fromkeys(recipient_ids))

    message_element: dict[str, Any] = {
        "type": "plain_text_input",
        "action_id": MESSAGE_ACTION_ID,
        "multiline": True,
        "placeholder": {"type": "plain_text", "text": "Great teamwork!"},
    }
    if message:
        message_element["initial_value"] = message

    return {
        "type": "modal",
        "callback_id": KUDOS_MODAL_CALLBACK_ID,
        "title": {"type": "plain_text", "text": "Send Kudos 🙌"},
        "submit": {"type": "plain_text", "text": "Send"},
        "close": {"type": "plain_text", "text": "Cancel"},
        "blocks": [
            {
                "type": "input",
                "block_id": RECIPIENTS_BLOCK_ID,
                "label": {"type": "plain_text", "text": "Who deserves kudos?"},
                "element": recipients_element,
            },
            {
                "type": "input",
                "block_id": MESSAGE_BLOCK_ID,
                "label": {"type": "plain_text", "text": "Your message"},
                "element": message_element,
            },
        ],
        "private_metadata": json.dumps(
            {"channel_id": channel_id, "user_id": user_id}
        ),
    }


def parse_modal_submission(view: dict[str, Any]) -> ModalSubmission:
    """Read recipients, message, and origin from a submitted kudos view.

    Raises:
        ValidationError: Metadata is missing or malformed
    """
    try:
        metadata = json.loads(view.get("private_metadata") or "{}")
    except json.JSONDecodeError as exc:
        raise ValidationError("Malformed kudos modal metadata") from exc

    user_id = metadata.get("user_id")
    channel_id = metadata.get("channel_id")
    if not user_id or not channel_id:
        raise ValidationError("Kudos modal metadata lacks user or channel")

    values = (view.get("state") or {}).get("values") or {}
    recipients_state = values.get(RECIPIENTS_BLOCK_ID, {}).get(RECIPIENTS_ACTION_ID, {})
    message_state = values.get(MESSAGE_BLOCK_ID, {}).get(MESSAGE_ACTION_ID, {})

    return ModalSubmission(
        user_id=user_id,
        channel_id=channel_id,
        recipient_ids=list(recipients_state.get("selected_users") or []),
        message=(message_state.get("value") or "").strip(),
    )
