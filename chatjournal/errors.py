"""Exception types shared across chatjournal."""


class ChatJournalError(Exception):
    """Base class for chatjournal errors."""


class ConversationLimitExceededError(ChatJournalError):
    """Raised when appending messages would exceed the per-conversation entry limit."""

    def __init__(
        self,
        conversation_id: str,
        current_length: int,
        max_length: int,
        new_message_count: int,
    ) -> None:
        super().__init__(
            f"Cannot add {new_message_count} messages to conversation '{conversation_id}': "
            f"would exceed maximum of {max_length} (current: {current_length})"
        )
        self.conversation_id = conversation_id
        self.current_length = current_length
        self.max_length = max_length
        self.new_message_count = new_message_count


class SummarizationError(ChatJournalError):
    """Raised when the summarizer cannot produce a usable summary."""


class UnsupportedRoleError(ChatJournalError, ValueError):
    """Raised when a message or stored entry carries a role outside MessageType."""

    def __init__(self, role: str) -> None:
        super().__init__(f"Unsupported message role: {role!r}")
        self.role = role


def validate_conversation_id(conversation_id: str | None) -> None:
    """Reject a missing or empty conversation id."""
    if conversation_id is None:
        raise ValueError("conversation_id must not be None")
    if not conversation_id:
        raise ValueError("conversation_id must not be empty")
