"""Conversion between chat messages and journal entries."""

import json
from enum import Enum
from typing import Any

from loguru import logger

from chatjournal.errors import UnsupportedRoleError
from chatjournal.store.base import Entry
from chatjournal.tokens import TokenCounter, message_text


class MessageType(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class UnknownRolePolicy(str, Enum):
    """What to do with a stored entry whose role is not a MessageType."""
    drop = "drop"
    reject = "reject"


class EntryMapper:
    """
    Maps OpenAI-style message dicts to entries and back.

    Tool results keep their ``tool_call_id`` and ``name`` by storing a JSON
    document as the entry content. Every other role stores its text.
    Assistant ``tool_calls`` are not journaled.
    """

    def __init__(
        self,
        token_counter: TokenCounter,
        unknown_role_policy: UnknownRolePolicy | str = UnknownRolePolicy.drop,
    ):
        if token_counter is None:
            raise ValueError("token_counter must not be None")
        self.token_counter = token_counter
        self.unknown_role_policy = UnknownRolePolicy(unknown_role_policy)

    def to_entry(self, message: dict[str, Any]) -> Entry:
        """Build an unsaved entry (index 0) with its token count computed once."""
        if message is None:
            raise ValueError("message must not be None")
        role = message.get("role")
        try:
            message_type = MessageType(role)
        except ValueError:
            raise UnsupportedRoleError(str(role)) from None

        if message_type is MessageType.TOOL:
            content = json.dumps({
                "tool_call_id": message.get("tool_call_id"),
                "name": message.get("name"),
                "content": message_text(message),
            }, ensure_ascii=False)
        else:
            content = message_text(message)

        tokens = self.token_counter.count([message])
        return Entry(index=0, role=message_type.name, content=content, tokens=tokens)

    def to_entries(self, messages: list[dict[str, Any]]) -> list[Entry]:
        if messages is None:
            raise ValueError("messages must not be None")
        return [self.to_entry(m) for m in messages]

    def to_message(self, entry: Entry) -> dict[str, Any] | None:
        """Rebuild a message from an entry.

        Returns None for an unknown stored role under the ``drop`` policy.
        """
        if entry is None:
            raise ValueError("entry must not be None")
        try:
            message_type = MessageType[entry.role]
        except KeyError:
            if self.unknown_role_policy is UnknownRolePolicy.reject:
                raise UnsupportedRoleError(entry.role) from None
            logger.warning(f"Dropping entry {entry.index} with unsupported role {entry.role!r}")
            return None

        if message_type is MessageType.TOOL:
            return self._to_tool_message(entry.content)
        return {"role": message_type.value, "content": entry.content}

    def to_messages(self, entries: list[Entry]) -> list[dict[str, Any]]:
        """Map entries in order, leaving out dropped ones."""
        if entries is None:
            raise ValueError("entries must not be None")
        messages = []
        for entry in entries:
            message = self.to_message(entry)
            if message is not None:
                messages.append(message)
        return messages

    @staticmethod
    def _to_tool_message(content: str) -> dict[str, Any]:
        data = json.loads(content)
        message: dict[str, Any] = {"role": MessageType.TOOL.value, "content": data.get("content", "")}
        if data.get("tool_call_id") is not None:
            message["tool_call_id"] = data["tool_call_id"]
        if data.get("name") is not None:
            message["name"] = data["name"]
        return message
