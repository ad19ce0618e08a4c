"""Data models for chat sessions.

These models define the structure of a conversation and its turns,
independent of where the session file lives.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..config import ChatConfig
from ..errors import EmptyContentError


def now() -> datetime:
    """Current local time, timezone-aware."""
    return datetime.now().astimezone()


class Role(str, Enum):
    """Author of a message."""

    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """One turn of a conversation."""

    model_config = ConfigDict(frozen=True)

    role: Role = Field(description="Who wrote the message")
    content: str = Field(min_length=1, description="Message text, never empty")
    timestamp: datetime = Field(default_factory=now)

    @classmethod
    def create(cls, role: Role | str, content: str) -> "Message":
        """Create a message stamped with the current time.

        Raises:
            EmptyContentError: If content is empty
        """
        if not content:
            raise EmptyContentError("message content must not be empty")
        return cls(role=role, content=content)

    @property
    def is_user(self) -> bool:
        return self.role == Role.USER

    @property
    def is_assistant(self) -> bool:
        return self.role == Role.ASSISTANT


class ChatSession(BaseModel):
    """Complete conversation state for one user.

    The session owns its message sequence. The configuration is a live
    reference used for paths and formatting and is never serialized.
    """

    username: str = Field(min_length=1)
    messages: list[Message] = Field(default_factory=list)
    created: datetime = Field(default_factory=now)
    updated: datetime = Field(default_factory=now)
    config: ChatConfig | None = Field(default=None, exclude=True, repr=False)

    def add_message(self, role: Role | str, content: str) -> Message:
        """Append a new message and bump ``updated``.

        Args:
            role: Author of the message
            content: Message text

        Returns:
            The appended message

        Raises:
            EmptyContentError: If content is empty
        """
        message = Message.create(role, content)
        self.messages.append(message)
        self.updated = message.timestamp
        return message

    def recent(self, count: int) -> list[Message]:
        """Return the last ``count`` messages in conversation order."""
        if count <= 0:
            return []
        return self.messages[-count:]
