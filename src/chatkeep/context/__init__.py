"""Context window module for chatkeep.

Selects the trailing window of a conversation and renders it into the
payload sent to the model.
"""

from .base import ContextPayload, ContextRenderer, select_window, window_start
from .factory import create_context_renderer, renderer_from_config
from .renderers import PROMPT_LABELS, FlattenedPromptRenderer, MessageListRenderer, PromptLabels

__all__ = [
    "ContextPayload",
    "ContextRenderer",
    "FlattenedPromptRenderer",
    "MessageListRenderer",
    "PROMPT_LABELS",
    "PromptLabels",
    "create_context_renderer",
    "renderer_from_config",
    "select_window",
    "window_start",
]
