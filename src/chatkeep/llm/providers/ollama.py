from collections.abc import AsyncIterator
from typing import Any

from ollama import AsyncClient

from ..base import InferenceClient
from ..models import ChatMessage, InferenceRequest, StreamChunk, StreamingResponse


def build_options(request: InferenceRequest) -> dict[str, Any]:
    """Convert request sampling settings to Ollama model options.

    ``stop`` and ``num_predict`` are only sent when set, so the server
    defaults apply otherwise.
    """
    options: dict[str, Any] = {"temperature": request.temperature}
    if request.stop:
        options["stop"] = list(request.stop)
    if request.max_tokens is not None:
        options["num_predict"] = request.max_tokens
    return options


def _messages_to_ollama_format(messages: list[ChatMessage]) -> list[dict[str, str]]:
    return [{"role": msg.role, "content": msg.content} for msg in messages]


def _usage(response: Any) -> dict[str, int] | None:
    prompt_tokens = getattr(response, "prompt_eval_count", None)
    completion_tokens = getattr(response, "eval_count", None)
    if prompt_tokens is None and completion_tokens is None:
        return None
    prompt_tokens = prompt_tokens or 0
    completion_tokens = completion_tokens or 0
    return {
        "prompt_tokens": prompt_tokens,
        "completion_tokens": completion_tokens,
        "total_tokens": prompt_tokens + completion_tokens,
    }


class OllamaProvider(InferenceClient):
    """Ollama inference client.

    Hidden design decisions:
    - Structured payloads go to the chat endpoint, flattened prompts to
      the generate endpoint
    - Sampling settings travel as model options
    - Reasoning output arrives in a separate ``thinking`` field
    """

    def __init__(
        self,
        host: str | None = None,
        timeout: float | None = None,
        **client_kwargs: Any
    ):
        """Initialize Ollama client.

        Args:
            host: Ollama server URL (None uses OLLAMA_HOST or localhost)
            timeout: HTTP timeout in seconds
            **client_kwargs: Additional kwargs for ollama.AsyncClient
        """
        self._host = host
        self._client = AsyncClient(host=host, timeout=timeout, **client_kwargs)

    @property
    def host(self) -> str | None:
        return self._host

    async def stream(self, request: InferenceRequest) -> StreamingResponse:
        """Start a streaming chat or generate request.

        Args:
            request: Model, payload and sampling options

        Returns:
            StreamingResponse yielding StreamChunk objects
        """
        if request.messages is not None:
            response = StreamingResponse(self._chat_stream_generator(request))
        else:
            response = StreamingResponse(self._generate_stream_generator(request))
        self._current_stream_response = response
        return response

    async def _chat_stream_generator(self, request: InferenceRequest) -> AsyncIterator[StreamChunk]:
        """Internal generator for chat endpoint streaming with usage capture."""
        stream = await self._client.chat(
            model=request.model,
            messages=_messages_to_ollama_format(request.messages or []),
            stream=True,
            think=request.think,
            options=build_options(request),
        )

        async for part in stream:
            if part.done:
                usage = _usage(part)
                if usage is not None:
                    self._current_stream_response.set_usage(usage)
            message = part.message
            yield StreamChunk(
                content=message.content or "",
                thinking=getattr(message, "thinking", None) or "",
            )

    async def _generate_stream_generator(self, request: InferenceRequest) -> AsyncIterator[StreamChunk]:
        """Internal generator for generate endpoint streaming with usage capture."""
        stream = await self._client.generate(
            model=request.model,
            prompt=request.prompt or "",
            system=request.system,
            stream=True,
            think=request.think,
            options=build_options(request),
        )

        async for part in stream:
            if part.done:
                usage = _usage(part)
                if usage is not None:
                    self._current_stream_response.set_usage(usage)
            yield StreamChunk(
                content=part.response or "",
                thinking=getattr(part, "thinking", None) or "",
            )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()
