"""Interactive chat module for chatkeep."""

from .display import ChatTerminal, truncate_content
from .orchestrator import (
    ChatOrchestrator,
    ChatState,
    is_exit_command,
    should_auto_save,
)

__all__ = [
    "ChatOrchestrator",
    "ChatState",
    "ChatTerminal",
    "is_exit_command",
    "should_auto_save",
    "truncate_content",
]
