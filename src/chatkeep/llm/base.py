from abc import ABC, abstractmethod
from typing import Any

from .models import InferenceRequest, StreamingResponse


class InferenceClient(ABC):
    """Abstract base class for inference clients.

    This module hides the design decision of which model server is used.
    Implementations must handle provider-specific details like:
    - API client setup and authentication
    - Request format conversion (structured messages or flattened prompt)
    - Splitting reasoning output from answer output

    Supports async context manager protocol for proper resource cleanup:
        async with client:
            stream = await client.stream(request)
        # Automatically cleaned up
    """

    @abstractmethod
    async def stream(self, request: InferenceRequest) -> StreamingResponse:
        """Start a streaming request.

        Args:
            request: Model, payload and sampling options

        Returns:
            StreamingResponse yielding StreamChunk objects. Chunks may be
            empty, and thinking and answer chunks may interleave in any order.

        Raises:
            Exception: Provider-specific errors while connecting or streaming
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""
        pass

    async def __aenter__(self) -> "InferenceClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            # Suppress harmless cleanup errors from httpx/anyio
            if "Event loop is closed" not in str(e):
                raise
