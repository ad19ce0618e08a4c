"""Pytest configuration and shared fixtures."""
import asyncio
import io
from collections.abc import Iterable

import pytest
from rich.console import Console

from chatkeep.chat import ChatTerminal
from chatkeep.config import ChatConfig
from chatkeep.errors import SaveError
from chatkeep.llm import InferenceClient, InferenceRequest, StreamChunk, StreamingResponse
from chatkeep.session import SessionStore

CONFIG_ENV_VARS = (
    "LLM_BACKEND",
    "OLLAMA_HOST",
    "OPENAI_BASE_URL",
    "OPENAI_API_KEY",
    "MODEL_NAME",
    "TEMPERATURE",
    "MODEL_THINK_VALUE",
    "CONTEXT_MODE",
    "CTX_DIR",
    "CTX_SIZE_LIMIT",
    "CTX_FILE_EXT",
    "SYSTEM_PROMPT",
    "ASSISTANT_PREFILL",
    "USE_ASSISTANT_PREFILL",
    "STOP_SEQUENCES",
    "MAX_RESPONSE_SIZE",
    "REQUEST_TIMEOUT",
    "PROMPT_LOCALE",
    "RECENT_MESSAGES",
    "MAX_DISPLAY_LENGTH",
)


class ScriptedClient(InferenceClient):
    """Inference client that replays scripted chunks and records requests."""

    def __init__(
        self,
        chunks: Iterable[StreamChunk | str] = (),
        error: Exception | None = None,
        delay: float = 0.0,
    ):
        self.chunks = [
            StreamChunk(content=chunk) if isinstance(chunk, str) else chunk
            for chunk in chunks
        ]
        self.error = error
        self.delay = delay
        self.requests: list[InferenceRequest] = []
        self.closed = False

    async def stream(self, request: InferenceRequest) -> StreamingResponse:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return StreamingResponse(self._generate())

    async def _generate(self):
        for chunk in self.chunks:
            if self.delay:
                await asyncio.sleep(self.delay)
            yield chunk

    async def close(self) -> None:
        self.closed = True


class RecordingStore(SessionStore):
    """Session store that records the message count at every save."""

    def __init__(self, config: ChatConfig, fail: bool = False):
        super().__init__(config)
        self.saved_counts: list[int] = []
        self.fail = fail

    def save(self, session):
        if self.fail:
            raise SaveError("disk full")
        self.saved_counts.append(len(session.messages))
        return super().save(session)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every configuration variable from the environment.

    Each key is set before it is deleted so that monkeypatch restores the
    original state even for variables a dotenv file adds during the test.
    """
    for key in CONFIG_ENV_VARS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch


@pytest.fixture
def config(tmp_path):
    """Return a configuration that keeps sessions under a temp directory."""
    return ChatConfig(
        model_name="test-model",
        temperature=0.7,
        ctx_dir=tmp_path / "chats",
        ctx_size_limit=10,
        use_assistant_prefill=False,
    )


@pytest.fixture
def store(config):
    """Return a JSON session store for the test configuration."""
    return SessionStore(config)


@pytest.fixture
def output():
    """Return the buffer that the test console writes to."""
    return io.StringIO()


@pytest.fixture
def console(output):
    """Return a wide, colourless console writing to the output buffer."""
    return Console(file=output, width=200, color_system=None, force_terminal=False)


@pytest.fixture
def make_terminal(console):
    """Return a factory for terminals that read scripted input lines."""
    def _make(lines: Iterable[str] = ()) -> ChatTerminal:
        remaining = iter(lines)

        def _read() -> str:
            try:
                return next(remaining)
            except StopIteration:
                raise EOFError from None

        return ChatTerminal(console, input_func=_read)

    return _make


@pytest.fixture
def scripted_client():
    """Return the ScriptedClient class for building mock inference clients."""
    return ScriptedClient


@pytest.fixture
def recording_store():
    """Return the RecordingStore class."""
    return RecordingStore
