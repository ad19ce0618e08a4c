from typing import Any

from .base import InferenceClient
from .providers import OllamaProvider, OpenAIProvider


def create_inference_client(backend: str, **config: Any) -> InferenceClient:
    """Create an inference client instance.

    This factory function hides the instantiation logic for different backends.

    Args:
        backend: Backend type ('ollama', 'openai')
        **config: Backend-specific configuration
            For Ollama:
                - host: str | None (default: OLLAMA_HOST or localhost)
                - timeout: float | None
            For OpenAI-compatible servers:
                - api_key: str (required)
                - base_url: str | None
                - timeout: float | None

    Returns:
        Initialized inference client

    Raises:
        ValueError: If backend type is not supported
        TypeError: If required configuration is missing

    Examples:
        >>> client = create_inference_client("ollama", host="http://localhost:11434")

        >>> client = create_inference_client(
        ...     "openai",
        ...     api_key="sk-...",
        ...     base_url="https://api.deepseek.com"
        ... )
    """
    backend_lower = backend.lower()

    if backend_lower == "ollama":
        return OllamaProvider(**config)

    if backend_lower == "openai":
        if not config.get("api_key"):
            raise TypeError("OpenAI backend requires 'api_key' in config")
        return OpenAIProvider(**config)

    raise ValueError(
        f"Unsupported backend: {backend}. "
        f"Supported backends: 'ollama', 'openai'"
    )
