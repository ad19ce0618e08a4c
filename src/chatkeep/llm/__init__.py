from .base import InferenceClient
from .factory import create_inference_client
from .models import ChatMessage, InferenceRequest, StreamChunk, StreamingResponse
from .providers import OllamaProvider, OpenAIProvider

__all__ = [
    "InferenceClient",
    "create_inference_client",
    "ChatMessage",
    "InferenceRequest",
    "StreamChunk",
    "StreamingResponse",
    "OllamaProvider",
    "OpenAIProvider",
]
