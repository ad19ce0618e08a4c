"""
chatkeep: a terminal chat client with persistent per-user conversation history.

Each module hides one design decision: where sessions live on disk,
which past turns reach the model, and which inference server answers.
"""

__version__ = "0.1.0"

from .config import ChatConfig, ContextMode, InferenceBackend, load_config
from .errors import ChatKeepError
from .session import ChatSession, Message, Role, SessionStore

__all__ = [
    "ChatConfig",
    "ChatKeepError",
    "ChatSession",
    "ContextMode",
    "InferenceBackend",
    "Message",
    "Role",
    "SessionStore",
    "load_config",
]
