"""Validation of inbound chat messages before they are sent upstream."""

from typing import List

from app.models.request import ChatMessage, MessageRole
from app.utils.exceptions import EmptyContentError, InvalidArgumentError, InvalidRoleError


def to_upstream_messages(messages: List[ChatMessage], strip: bool = False) -> List[dict[str, str]]:
    """
    Map inbound messages to upstream ``{"role", "content"}`` dicts.

    Args:
        messages: Inbound messages
        strip: Send content with surrounding whitespace removed

    Raises:
        InvalidRoleError: A message has an unspecified role
        EmptyContentError: A message has blank content
        InvalidArgumentError: There are no messages
    """
    converted = []
    for msg in messages:
        if msg.role is MessageRole.UNSPECIFIED:
            raise InvalidRoleError(f"role: {msg.role.value}")

        content = msg.content.strip()
        if not content:
            raise EmptyContentError("message content is empty")

        converted.append({
            "role": msg.role.value,
            "content": content if strip else msg.content,
        })

    if not converted:
        raise InvalidArgumentError("at least one message is required")

    return converted
