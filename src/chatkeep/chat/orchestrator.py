"""Interactive chat loop.

The orchestrator owns the session for the lifetime of the process and runs
one turn at a time: read a line, record it, send the windowed context to
the model, stream the answer back, record it, and save periodically.
"""

import asyncio
import logging
from enum import Enum

from ..config import ChatConfig
from ..context import ContextRenderer, renderer_from_config
from ..errors import (
    InferenceTimeoutError,
    NoMessagesError,
    SaveError,
    SendError,
)
from ..llm import InferenceClient, InferenceRequest
from ..session import ChatSession, Message, Role, SessionStore
from .display import ChatTerminal

logger = logging.getLogger(__name__)

EXIT_COMMANDS = frozenset({"exit", "quit"})

# Save after the first exchange, then every fourth message
AUTO_SAVE_FIRST = 2
AUTO_SAVE_INTERVAL = 4


class ChatState(str, Enum):
    """Where the chat loop currently is."""

    AWAITING_INPUT = "awaiting_input"
    SENDING = "sending"
    STREAMING = "streaming"
    CLOSED = "closed"


def is_exit_command(text: str) -> bool:
    """Whether a (trimmed) input line ends the chat.

    Matching is exact and case-sensitive.
    """
    return text == "" or text in EXIT_COMMANDS


def should_auto_save(message_count: int) -> bool:
    """Whether the session is saved at this message count (2, 4, 8, 12, ...)."""
    if message_count <= 0:
        return False
    return message_count == AUTO_SAVE_FIRST or message_count % AUTO_SAVE_INTERVAL == 0


class ChatOrchestrator:
    """Runs the read-send-stream-save loop for one session."""

    def __init__(
        self,
        session: ChatSession,
        client: InferenceClient,
        store: SessionStore,
        config: ChatConfig,
        terminal: ChatTerminal | None = None,
        renderer: ContextRenderer | None = None,
    ):
        """Initialize orchestrator.

        Args:
            session: Session to append turns to
            client: Inference client used for every turn
            store: Store used by auto-save
            config: Model and context settings
            terminal: Terminal I/O (defaults to stdin/stdout)
            renderer: Context renderer (defaults to the configured mode)
        """
        self._session = session
        self._client = client
        self._store = store
        self._config = config
        self._terminal = terminal or ChatTerminal()
        self._renderer = renderer or renderer_from_config(config)
        self._state = ChatState.AWAITING_INPUT

    @property
    def state(self) -> ChatState:
        return self._state

    @property
    def session(self) -> ChatSession:
        return self._session

    @property
    def messages(self) -> list[Message]:
        return self._session.messages

    async def run(self) -> None:
        """Run the loop until an exit command or end of input.

        Send and save failures are reported and the loop continues.
        """
        while self._state != ChatState.CLOSED:
            try:
                line = self._terminal.read_line()
            except EOFError:
                self._terminal.console.print()
                self._state = ChatState.CLOSED
                break

            text = line.strip()
            if is_exit_command(text):
                self._terminal.console.print("Goodbye!")
                self._state = ChatState.CLOSED
                break

            try:
                await self.process_user_input(text)
            except SendError as e:
                logger.debug("Turn failed", exc_info=True)
                self._terminal.error(str(e))
            finally:
                if self._state != ChatState.CLOSED:
                    self._state = ChatState.AWAITING_INPUT
            self._terminal.console.print()

    async def process_user_input(self, text: str) -> Message:
        """Record a user turn and get the model's answer.

        The user's message stays in the history even if sending fails.

        Returns:
            The assistant message

        Raises:
            SendError: If the model could not answer
        """
        self._session.add_message(Role.USER, text)
        return await self.send_message()

    def build_request(self) -> InferenceRequest:
        """Render the current history into an inference request.

        Raises:
            NoMessagesError: If the session has no messages
        """
        payload = self._renderer.render(self._session.messages)
        config = self._config
        return InferenceRequest(
            model=config.model_name,
            messages=payload.messages,
            prompt=payload.prompt,
            system=payload.system,
            temperature=config.temperature,
            think=config.think,
            stop=config.stop_sequences or None,
            max_tokens=config.max_response_size or None,
        )

    async def send_message(self) -> Message:
        """Send the windowed history and stream back the answer.

        Answer text is printed as it arrives and collected; reasoning text
        is printed but not collected. On success the answer is appended to
        the session and the auto-save policy runs.

        Returns:
            The assistant message

        Raises:
            NoMessagesError: If the session has no messages
            InferenceTimeoutError: If the request exceeds the timeout
            SendError: If the request or stream fails, or the answer is empty
        """
        if not self._session.messages:
            raise NoMessagesError("no messages to send")

        self._state = ChatState.SENDING
        request = self.build_request()
        self._terminal.begin_response()

        try:
            answer = await asyncio.wait_for(
                self._collect_response(request),
                timeout=self._config.request_timeout,
            )
        except asyncio.TimeoutError as e:
            raise InferenceTimeoutError(
                f"model did not answer within {self._config.request_timeout:g}s"
            ) from e
        except SendError:
            raise
        except Exception as e:
            raise SendError(f"failed to send message: {e}") from e
        finally:
            self._terminal.end_response()

        if not answer:
            raise SendError("model returned an empty response")

        message = self._session.add_message(Role.ASSISTANT, answer)
        self.auto_save()
        return message

    async def _collect_response(self, request: InferenceRequest) -> str:
        stream = await self._client.stream(request)
        self._state = ChatState.STREAMING

        parts: list[str] = []
        async for chunk in stream:
            if chunk.thinking:
                self._terminal.write_thinking(chunk.thinking)
            if chunk.content:
                self._terminal.write_answer(chunk.content)
                parts.append(chunk.content)

        if stream.usage:
            logger.debug("Token usage: %s", stream.usage)
        return "".join(parts)

    def auto_save(self) -> bool:
        """Save the session if the message count is a save point.

        Failures are reported, not raised; the next save point retries.

        Returns:
            True if the session was written
        """
        if not should_auto_save(len(self._session.messages)):
            return False

        self._terminal.notice("Auto-saving session...")
        try:
            path = self._store.save(self._session)
        except SaveError as e:
            logger.debug("Auto-save failed", exc_info=True)
            self._terminal.warning(f"auto-save failed: {e}")
            return False

        logger.info("Session saved to %s", path)
        return True
