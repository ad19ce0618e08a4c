from collections.abc import AsyncIterator
from typing import Any

from openai import AsyncOpenAI

from ..base import InferenceClient
from ..models import InferenceRequest, StreamChunk, StreamingResponse

# Delta attributes that carry reasoning text on OpenAI-compatible servers
# (DeepSeek uses reasoning_content, Ollama and vLLM use reasoning)
REASONING_FIELDS = ("reasoning_content", "reasoning")

REASONING_EFFORTS = {"minimal", "low", "medium", "high"}


def _request_to_openai_messages(request: InferenceRequest) -> list[dict[str, str]]:
    """Convert a request payload to Chat Completions messages.

    A flattened prompt becomes a single user message, preceded by the
    system prompt when one is set.
    """
    if request.messages is not None:
        return [{"role": msg.role, "content": msg.content} for msg in request.messages]

    messages: list[dict[str, str]] = []
    if request.system:
        messages.append({"role": "system", "content": request.system})
    messages.append({"role": "user", "content": request.prompt or ""})
    return messages


def _reasoning_text(delta: Any) -> str:
    for field in REASONING_FIELDS:
        value = getattr(delta, field, None)
        if value:
            return value
    return ""


def build_request_params(request: InferenceRequest) -> dict[str, Any]:
    """Build Chat Completions parameters for a streaming request."""
    params: dict[str, Any] = {
        "model": request.model,
        "messages": _request_to_openai_messages(request),
        "temperature": request.temperature,
        "stream": True,
        "stream_options": {"include_usage": True},
    }
    if request.stop:
        params["stop"] = list(request.stop)
    if request.max_tokens is not None:
        params["max_tokens"] = request.max_tokens
    if isinstance(request.think, str) and request.think in REASONING_EFFORTS:
        params["reasoning_effort"] = request.think
    return params


class OpenAIProvider(InferenceClient):
    """OpenAI-compatible inference client.

    Hidden design decisions:
    - OpenAI API client initialization
    - Message format conversion
    - Authentication mechanism
    - Mapping reasoning deltas to the thinking channel
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float | None = None,
        organization: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize OpenAI-compatible client.

        Args:
            api_key: API key (local servers accept any non-empty value)
            base_url: Optional custom API base URL
            timeout: HTTP timeout in seconds
            organization: Optional organization ID
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            timeout=timeout,
            **client_kwargs
        )

    async def stream(self, request: InferenceRequest) -> StreamingResponse:
        """Start a streaming chat completion.

        Args:
            request: Model, payload and sampling options

        Returns:
            StreamingResponse yielding StreamChunk objects
        """
        response = StreamingResponse(self._chat_stream_generator(build_request_params(request)))
        self._current_stream_response = response
        return response

    async def _chat_stream_generator(self, request_params: dict[str, Any]) -> AsyncIterator[StreamChunk]:
        """Internal generator for Chat Completions streaming with usage capture."""
        stream = await self._client.chat.completions.create(**request_params)

        async for chunk in stream:
            # Check for usage in the final chunk
            if chunk.usage is not None:
                self._current_stream_response.set_usage({
                    "prompt_tokens": chunk.usage.prompt_tokens,
                    "completion_tokens": chunk.usage.completion_tokens,
                    "total_tokens": chunk.usage.total_tokens,
                })
            if chunk.choices:
                delta = chunk.choices[0].delta
                yield StreamChunk(
                    content=delta.content or "",
                    thinking=_reasoning_text(delta),
                )

    async def close(self) -> None:
        """Close the OpenAI client.

        Note: Uses the OpenAI SDK's async context manager for proper cleanup.
        See: https://github.com/openai/openai-python#async-usage
        """
        await self._client.close()

