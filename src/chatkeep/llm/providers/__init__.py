from .ollama import OllamaProvider
from .openai import OpenAIProvider

__all__ = ["OllamaProvider", "OpenAIProvider"]
