from collections.abc import AsyncIterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ChatMessage(BaseModel):
    """Represents a chat message in an inference payload."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="Role of the message sender: 'user', 'assistant', or 'system'")
    content: str = Field(description="Content of the message")


class StreamChunk(BaseModel):
    """One incremental piece of a streamed response.

    Either channel may be empty. Thinking text is shown to the user but is
    never part of the answer.
    """

    model_config = ConfigDict(frozen=True)

    content: str = Field(default="", description="Answer text")
    thinking: str = Field(default="", description="Reasoning text")


class InferenceRequest(BaseModel):
    """A single model request, in either structured or flattened form."""

    model_config = ConfigDict(frozen=True)

    model: str = Field(description="Model identifier")
    messages: list[ChatMessage] | None = Field(
        default=None,
        description="Structured conversation (messages mode)"
    )
    prompt: str | None = Field(default=None, description="Flattened prompt (prompt mode)")
    system: str | None = Field(default=None, description="System prompt sent alongside a flattened prompt")
    temperature: float = Field(default=0.1)
    think: bool | str | None = Field(default=None, description="Reasoning mode flag or effort level")
    stop: list[str] | None = Field(default=None, description="Stop sequences")
    max_tokens: int | None = Field(
        default=None,
        gt=0,
        description="Response size cap (None = unlimited)"
    )

    @model_validator(mode="after")
    def _check_payload(self) -> "InferenceRequest":
        if (self.messages is None) == (self.prompt is None):
            raise ValueError("exactly one of 'messages' or 'prompt' must be set")
        return self


class StreamingResponse:
    """Wrapper for streaming responses that captures usage info.

    Acts as an async iterator of StreamChunk objects while storing token
    usage that becomes available at the end of the stream.

    Usage:
        stream = await client.stream(request)
        async for chunk in stream:
            print(chunk.content, end="")
        # After iteration, usage is available
        print(stream.usage)  # {"prompt_tokens": 100, "completion_tokens": 50, ...}
    """

    def __init__(self, async_iter: AsyncIterator[StreamChunk]):
        """Initialize with an async iterator of chunks.

        Args:
            async_iter: Async iterator yielding StreamChunk objects
        """
        self._iter = async_iter
        self._usage: dict[str, Any] | None = None

    @property
    def usage(self) -> dict[str, Any] | None:
        """Get token usage info (available after iteration completes)."""
        return self._usage

    def set_usage(self, usage: dict[str, Any]) -> None:
        """Set token usage info (called by provider at end of stream)."""
        self._usage = usage

    def __aiter__(self) -> "StreamingResponse":
        """Return self as async iterator."""
        return self

    async def __anext__(self) -> StreamChunk:
        """Get next chunk from the underlying iterator."""
        return await self._iter.__anext__()
