"""Chat session module for chatkeep.

Provides the conversation data model and its JSON file persistence.
"""

from .models import ChatSession, Message, Role
from .store import SessionStore, sanitize_user_name

__all__ = [
    "ChatSession",
    "Message",
    "Role",
    "SessionStore",
    "sanitize_user_name",
]
