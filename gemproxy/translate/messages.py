"""OpenAI messages -> Gemini contents translation.

Gemini chat sessions model a strictly alternating two-party conversation:
- roles are only "user" and "model"
- no two adjacent turns may share a role
- the history must open on "user" and the message sent must be from "user"

OpenAI requests are a flat list of system/user/assistant messages, so the
pipeline here is:
    merge_messages -> to_gemini_contents -> fix_turn_order -> split_history

Example:
    [{user, "hello"}, {user, "world"}, {assistant, "hi"}, {assistant, "there"}]
merges to
    [{user, "hello\\nworld"}, {assistant, "hi\\nthere"}]
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Sequence

from google.genai import types

from ..core.exceptions import TurnOrderError, UnknownRoleError
from ..types.chat import Message, TextPart
from .parts import convert_part, is_inline_data_part

logger = logging.getLogger("gemproxy")

# Primes the session when the conversation would otherwise open on "model"
SYSTEM_PROMPT = "I will ask you a question. Please answer it."

# Gemini roles
ROLE_USER = "user"
ROLE_MODEL = "model"

# OpenAI roles
OPENAI_ROLE_SYSTEM = "system"
OPENAI_ROLE_USER = "user"
OPENAI_ROLE_ASSISTANT = "assistant"

GEMINI_ROLES_BY_OPENAI_ROLES = {
    OPENAI_ROLE_SYSTEM: ROLE_USER,
    OPENAI_ROLE_USER: ROLE_USER,
    OPENAI_ROLE_ASSISTANT: ROLE_MODEL,
}


def to_gemini_role(role: str) -> str:
    """Map an OpenAI role to its Gemini party.

    Raises:
        UnknownRoleError: The role has no Gemini counterpart.
    """
    try:
        return GEMINI_ROLES_BY_OPENAI_ROLES[role]
    except KeyError:
        raise UnknownRoleError(role) from None


def to_openai_role(role: str | None) -> str:
    """Map a Gemini party back to an OpenAI role."""
    if role == ROLE_MODEL:
        return OPENAI_ROLE_ASSISTANT
    return OPENAI_ROLE_USER


def _merge_pair(prev: Message, curr: Message) -> Message:
    if prev.is_multipart and curr.is_multipart:
        return replace(prev, parts=prev.parts + curr.parts)
    if prev.is_multipart:
        return replace(prev, parts=prev.parts + (TextPart(curr.content),))
    if curr.is_multipart:
        return replace(prev, content="", parts=(TextPart(prev.content),) + curr.parts)
    return replace(prev, content="\n".join([prev.content, curr.content]))


def merge_messages(messages: Sequence[Message]) -> list[Message]:
    """Merge consecutive messages that map to the same Gemini role.

    The kept message retains the role of the first message of the run, so a
    system message followed by user messages stays a system message.

    Raises:
        UnknownRoleError: A message role has no Gemini counterpart.
    """
    merged: list[Message] = []
    prev_role: str | None = None

    for message in messages:
        role = to_gemini_role(message.role)
        if role == prev_role:
            merged[-1] = _merge_pair(merged[-1], message)
        else:
            prev_role = role
            merged.append(message)

    return merged


def to_gemini_content(message: Message) -> types.Content:
    """Convert one merged message into a Gemini turn."""
    if message.is_multipart:
        parts = [convert_part(part) for part in message.parts]
    else:
        parts = [types.Part.from_text(text=message.content)]

    return types.Content(role=to_gemini_role(message.role), parts=parts)


def to_gemini_contents(messages: Sequence[Message]) -> list[types.Content]:
    """Convert merged messages into Gemini turns.

    Any conversion failure aborts the whole conversion.
    """
    return [to_gemini_content(message) for message in messages]


def is_multimodal(contents: Sequence[types.Content]) -> bool:
    """Return True if any turn carries inline binary data."""
    for content in contents:
        for part in content.parts or []:
            if is_inline_data_part(part):
                return True
    return False


def fix_turn_order(contents: Sequence[types.Content]) -> list[types.Content]:
    """Make the conversation open on the user role.

    The last turn must already be from the user; request decoding guarantees
    it, so a violation here is reported as an internal consistency error.
    """
    if not contents:
        raise TurnOrderError("turn list must not be empty")

    if contents[-1].role != ROLE_USER:
        raise TurnOrderError("last message must be from user")

    if contents[0].role == ROLE_USER:
        return list(contents)

    logger.debug("Conversation opens on %r; prepending priming turn", contents[0].role)
    primer = types.Content(role=ROLE_USER, parts=[types.Part.from_text(text=SYSTEM_PROMPT)])
    return [primer, *contents]


def split_history(
    contents: Sequence[types.Content],
) -> tuple[list[types.Content], types.Content]:
    """Split turns into the session history and the tail to send."""
    if not contents:
        raise TurnOrderError("pop from empty turn list")
    return list(contents[:-1]), contents[-1]


def build_contents(messages: Sequence[Message]) -> list[types.Content]:
    """Run the full message pipeline up to (not including) the split."""
    contents = to_gemini_contents(merge_messages(messages))
    return fix_turn_order(contents)
