"""Conversation data models."""
from dataclasses import dataclass

USER = "user"
ASSISTANT = "assistant"
ROLES = (USER, ASSISTANT)


@dataclass(frozen=True)
class ConversationTurn:
    """Represents a single turn in a conversation."""
    role: str
    content: str

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"Invalid conversation role: {self.role!r}")
