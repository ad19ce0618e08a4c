from typing import Any

from ..config import ChatConfig, ContextMode
from .base import ContextRenderer
from .renderers import FlattenedPromptRenderer, MessageListRenderer


def create_context_renderer(mode: ContextMode | str, **options: Any) -> ContextRenderer:
    """Create a context renderer.

    Args:
        mode: Payload shape ('messages' or 'prompt')
        **options: Renderer configuration
            For both:
                - limit: int (required)
                - system_prompt: str
            For 'prompt' only:
                - prefill: str
                - use_prefill: bool
                - locale: str ('en' or 'ru')

    Returns:
        ContextRenderer instance

    Raises:
        ValueError: If mode is not supported
        TypeError: If 'limit' is missing
    """
    if "limit" not in options:
        raise TypeError("Context renderer requires 'limit'")

    mode_value = mode.value if isinstance(mode, ContextMode) else str(mode).lower()

    if mode_value == ContextMode.MESSAGES.value:
        return MessageListRenderer(
            limit=options["limit"],
            system_prompt=options.get("system_prompt", ""),
        )

    if mode_value == ContextMode.PROMPT.value:
        return FlattenedPromptRenderer(**options)

    raise ValueError(
        f"Unsupported context mode: {mode}. "
        f"Supported modes: messages, prompt"
    )


def renderer_from_config(config: ChatConfig) -> ContextRenderer:
    """Create the renderer selected by the configuration."""
    if config.context_mode == ContextMode.PROMPT:
        return create_context_renderer(
            config.context_mode,
            limit=config.ctx_size_limit,
            system_prompt=config.system_prompt,
            prefill=config.assistant_prefill,
            use_prefill=config.use_assistant_prefill,
            locale=config.prompt_locale,
        )
    return create_context_renderer(
        config.context_mode,
        limit=config.ctx_size_limit,
        system_prompt=config.system_prompt,
    )
