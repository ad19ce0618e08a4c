"""Context window selection and the renderer interface.

This module hides which past messages reach the model. Windows are counted
in messages, not tokens or characters; anything older than the window is
dropped, never summarized.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field

from ..errors import NoMessagesError
from ..llm.models import ChatMessage
from ..session.models import Message


def window_start(total: int, limit: int) -> int:
    """Index of the first message inside a window of ``limit`` messages.

    A limit of zero yields ``total``, i.e. an empty window.
    """
    return max(0, total - limit)


def select_window(messages: Sequence[Message], limit: int) -> tuple[list[Message], Message]:
    """Split history into the windowed prior turns and the current message.

    The current (newest) message is always kept. At most ``limit`` messages
    before it are kept, in conversation order.

    Raises:
        NoMessagesError: If there are no messages
    """
    if not messages:
        raise NoMessagesError("no messages to send")

    prior = messages[:-1]
    start = window_start(len(prior), limit)
    return list(prior[start:]), messages[-1]


class ContextPayload(BaseModel):
    """Rendered context, in exactly one of the two request shapes."""

    model_config = ConfigDict(frozen=True)

    messages: list[ChatMessage] | None = Field(default=None, description="Structured conversation")
    prompt: str | None = Field(default=None, description="Flattened prompt text")
    system: str | None = Field(default=None, description="System prompt sent next to a flattened prompt")


class ContextRenderer(ABC):
    """Turns message history into a model payload."""

    def __init__(self, limit: int, system_prompt: str = ""):
        """Initialize renderer.

        Args:
            limit: Maximum number of prior messages kept in the window
            system_prompt: System prompt ("" for none)
        """
        self._limit = limit
        self._system_prompt = system_prompt

    @property
    def limit(self) -> int:
        return self._limit

    @abstractmethod
    def render(self, messages: Sequence[Message]) -> ContextPayload:
        """Render the windowed history.

        Raises:
            NoMessagesError: If there are no messages
        """
