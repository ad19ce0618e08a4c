"""Runtime configuration.

Hides where settings come from (a ``.env`` file and the process environment)
and how malformed values are handled. The rest of the package only sees an
immutable ChatConfig.
"""

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a smart assistant who helps the user with their tasks."
DEFAULT_ASSISTANT_PREFILL = "Alright, let's work through your question. "
DEFAULT_STOP_SEQUENCES = ["Human:", "User:"]

_TRUE_VALUES = {"1", "t", "true"}
_FALSE_VALUES = {"0", "f", "false"}


class InferenceBackend(str, Enum):
    """Which inference service the client talks to."""

    OLLAMA = "ollama"    # Ollama native API (chat / generate)
    OPENAI = "openai"    # Any OpenAI-compatible endpoint


class ContextMode(str, Enum):
    """Shape of the payload sent to the model."""

    MESSAGES = "messages"  # Structured {role, content} list
    PROMPT = "prompt"      # Single flattened prompt string


class ChatConfig(BaseModel):
    """Immutable settings for one process lifetime."""

    model_config = ConfigDict(frozen=True)

    backend: InferenceBackend = Field(default=InferenceBackend.OLLAMA)
    host: str | None = Field(default=None, description="Inference server URL (None uses the client default)")
    api_key: str | None = Field(default=None, description="API key for OpenAI-compatible backends")
    model_name: str = Field(default="deepseek-r1:8b", min_length=1)
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    think: bool | str = Field(default=False, description="Reasoning mode: on/off or an effort level")
    context_mode: ContextMode = Field(default=ContextMode.MESSAGES)
    ctx_dir: Path = Field(default=Path("chats"), description="Directory holding session files")
    ctx_size_limit: int = Field(default=10000, ge=0, description="Prior messages kept in the context window")
    ctx_file_ext: str = Field(default=".json")
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT)
    assistant_prefill: str = Field(default=DEFAULT_ASSISTANT_PREFILL)
    use_assistant_prefill: bool = Field(default=True)
    stop_sequences: list[str] = Field(default_factory=lambda: list(DEFAULT_STOP_SEQUENCES))
    max_response_size: int = Field(default=0, ge=0, description="Response size cap, 0 = unlimited")
    request_timeout: float = Field(default=300.0, gt=0, description="Seconds before a request is cancelled")
    prompt_locale: Literal["en", "ru"] = Field(default="en", description="Language of flattened prompt labels")
    recent_messages: int = Field(default=4, ge=0, description="Messages shown when resuming a chat")
    max_display_length: int = Field(default=1000, ge=0)

    def describe(self) -> list[tuple[str, str]]:
        """Return human-readable (setting, value) rows for display."""
        rows = [
            ("Backend", self.backend.value),
            ("Model", self.model_name),
            ("Temperature", f"{self.temperature:.1f}"),
            ("Think", str(self.think)),
            ("Context mode", self.context_mode.value),
            ("Chats directory", str(self.ctx_dir)),
            ("Context limit", f"{self.ctx_size_limit} messages"),
            (
                "Response limit",
                f"{self.max_response_size}" if self.max_response_size > 0 else "unlimited",
            ),
            ("File extension", self.ctx_file_ext),
            ("Use prefill", str(self.use_assistant_prefill)),
        ]
        if self.use_assistant_prefill:
            rows.append(("Prefill", self.assistant_prefill))
        rows.append(("Stop sequences", ", ".join(self.stop_sequences) or "none"))
        return rows


def get_env_str(key: str, default: str) -> str:
    value = os.getenv(key)
    if value:
        return value
    logger.debug("%s not set, using default: %s", key, default)
    return default


def get_env_optional(key: str) -> str | None:
    return os.getenv(key) or None


def get_env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("%s is invalid (%r), using default: %d", key, value, default)
        return default


def get_env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value:
        try:
            return float(value)
        except ValueError:
            logger.warning("%s is invalid (%r), using default: %.2f", key, value, default)
            return default
    logger.debug("%s not set, using default: %.2f", key, default)
    return default


def parse_bool(value: str) -> bool | None:
    """Parse a boolean literal, returning None when it is not one."""
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return None


def get_env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value:
        parsed = parse_bool(value)
        if parsed is not None:
            return parsed
        logger.warning("%s is invalid (%r), using default: %s", key, value, default)
        return default
    logger.debug("%s not set, using default: %s", key, default)
    return default


def get_env_string_list(key: str, default: list[str]) -> list[str]:
    """Read a JSON array of strings, e.g. ``["Human:", "User:"]``."""
    value = os.getenv(key)
    if not value:
        logger.debug("%s not set, using default", key)
        return list(default)

    try:
        parsed = json.loads(value.strip('"'))
    except json.JSONDecodeError:
        logger.warning("%s is not a valid JSON array, using default", key)
        return list(default)

    if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
        logger.warning("%s must be a JSON array of strings, using default", key)
        return list(default)
    return parsed


def get_env_think_value(key: str, default: bool | str) -> bool | str:
    """Read the think setting: a boolean literal, or any other string as-is."""
    value = os.getenv(key)
    if not value:
        logger.debug("%s not set, using default: %s", key, default)
        return default
    parsed = parse_bool(value)
    return value if parsed is None else parsed


def load_config(env_file: str | Path | None = ".env") -> ChatConfig:
    """Load configuration from a dotenv file and the environment.

    Variables already present in the environment take precedence over the
    file. Malformed individual values fall back to their defaults; values
    that parse but are out of range raise ConfigError.

    Args:
        env_file: Path to a dotenv file (None skips it)

    Returns:
        Validated, immutable configuration

    Raises:
        ConfigError: If the resulting settings are invalid
    """
    if env_file is not None:
        load_dotenv(env_file, override=False)

    backend = get_env_str("LLM_BACKEND", InferenceBackend.OLLAMA.value).lower()
    if backend == InferenceBackend.OPENAI.value:
        host = get_env_optional("OPENAI_BASE_URL")
    else:
        host = get_env_optional("OLLAMA_HOST")

    try:
        return ChatConfig(
            backend=backend,
            host=host,
            api_key=get_env_optional("OPENAI_API_KEY"),
            model_name=get_env_str("MODEL_NAME", "deepseek-r1:8b"),
            temperature=get_env_float("TEMPERATURE", 0.1),
            think=get_env_think_value("MODEL_THINK_VALUE", False),
            context_mode=get_env_str("CONTEXT_MODE", ContextMode.MESSAGES.value).lower(),
            ctx_dir=Path(get_env_str("CTX_DIR", "chats")),
            ctx_size_limit=get_env_int("CTX_SIZE_LIMIT", 10000),
            ctx_file_ext=get_env_str("CTX_FILE_EXT", ".json"),
            system_prompt=get_env_str("SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT),
            assistant_prefill=get_env_str("ASSISTANT_PREFILL", DEFAULT_ASSISTANT_PREFILL),
            use_assistant_prefill=get_env_bool("USE_ASSISTANT_PREFILL", True),
            stop_sequences=get_env_string_list("STOP_SEQUENCES", DEFAULT_STOP_SEQUENCES),
            max_response_size=get_env_int("MAX_RESPONSE_SIZE", 0),
            request_timeout=get_env_float("REQUEST_TIMEOUT", 300.0),
            prompt_locale=get_env_str("PROMPT_LOCALE", "en").lower(),
            recent_messages=get_env_int("RECENT_MESSAGES", 4),
            max_display_length=get_env_int("MAX_DISPLAY_LENGTH", 1000),
        )
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e
