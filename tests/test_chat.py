"""Unit tests for the chat loop and terminal display."""
import pytest

from chatkeep.chat import (
    ChatOrchestrator,
    ChatState,
    is_exit_command,
    should_auto_save,
    truncate_content,
)
from chatkeep.config import ContextMode
from chatkeep.errors import InferenceTimeoutError, NoMessagesError, SendError
from chatkeep.llm import StreamChunk
from chatkeep.session import ChatSession, Role


@pytest.fixture
def session(config):
    return ChatSession(username="alice", config=config)


@pytest.fixture
def make_orchestrator(session, store, config, make_terminal):
    """Return a factory for orchestrators wired to test doubles."""
    def _make(client, lines=(), store_=None, config_=None):
        return ChatOrchestrator(
            session=session,
            client=client,
            store=store_ or store,
            config=config_ or config,
            terminal=make_terminal(lines),
        )

    return _make


class TestExitCommand:
    """Tests for the exit predicate."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("exit", True),
            ("quit", True),
            ("", True),
            ("EXIT", False),
            ("Quit", False),
            (" exit", False),
            ("quit ", False),
            ("exit now", False),
            ("hello", False),
        ],
    )
    def test_is_exit_command(self, text, expected):
        """Test exact, case-sensitive matching."""
        assert is_exit_command(text) is expected


class TestAutoSavePolicy:
    """Tests for the auto-save cadence."""

    @pytest.mark.parametrize(
        "count,expected",
        [
            (0, False),
            (1, False),
            (2, True),
            (3, False),
            (4, True),
            (6, False),
            (8, True),
            (10, False),
            (12, True),
        ],
    )
    def test_should_auto_save(self, count, expected):
        """Test save points at 2 and every multiple of 4."""
        assert should_auto_save(count) is expected


class TestTruncateContent:
    """Tests for character-based truncation."""

    @pytest.mark.parametrize(
        "content,limit,expected",
        [
            ("short", 10, "short"),
            ("exactly10!", 10, "exactly10!"),
            ("this is a long message", 10, "this is a ..."),
            ("Привет, мир!", 6, "Привет..."),
            ("Hello 🌍🌎🌏 World", 8, "Hello 🌍🌎..."),
            ("", 5, ""),
        ],
    )
    def test_truncate(self, content, limit, expected):
        """Test truncation never splits a character."""
        assert truncate_content(content, limit) == expected


class TestChatTerminal:
    """Tests for ChatTerminal output."""

    def test_thinking_and_answer_on_separate_lines(self, make_terminal, output):
        """Test that switching from thinking to answer starts a new line."""
        terminal = make_terminal()

        terminal.begin_response()
        terminal.write_thinking("hmm")
        terminal.write_answer("Final.")
        terminal.end_response()

        assert output.getvalue() == "AI: hmm\nFinal.\n"

    def test_markup_is_printed_literally(self, make_terminal, output):
        """Test that model text containing brackets is not treated as markup."""
        terminal = make_terminal()

        terminal.write_answer("[bold]x[/bold]")
        terminal.error("bad [tag]")

        assert "[bold]x[/bold]" in output.getvalue()
        assert "Error: bad [tag]" in output.getvalue()

    def test_display_recent_messages(self, make_terminal, output, session):
        """Test that only the last N messages are shown, replies truncated."""
        terminal = make_terminal()
        session.add_message(Role.USER, "old question")
        session.add_message(Role.ASSISTANT, "old answer")
        session.add_message(Role.USER, "new question")
        session.add_message(Role.ASSISTANT, "a very long answer indeed")

        terminal.display_recent_messages(session.messages, count=2, max_length=6)

        text = output.getvalue()
        assert "old question" not in text
        assert "  You: new question" in text
        assert "  AI: a very..." in text


class TestSendMessage:
    """Tests for a single turn."""

    @pytest.mark.asyncio
    async def test_streams_and_records_answer(self, make_orchestrator, scripted_client, output, session):
        """Test that streamed chunks are printed and joined into one message."""
        orchestrator = make_orchestrator(scripted_client(["Hello, ", "world!"]))

        message = await orchestrator.process_user_input("Hi")

        assert message.content == "Hello, world!"
        assert [(m.role, m.content) for m in session.messages] == [
            (Role.USER, "Hi"),
            (Role.ASSISTANT, "Hello, world!"),
        ]
        assert "Hello, world!" in output.getvalue()

    @pytest.mark.asyncio
    async def test_thinking_excluded_from_answer(self, make_orchestrator, scripted_client, output):
        """Test that reasoning is shown but not saved."""
        orchestrator = make_orchestrator(scripted_client([
            StreamChunk(thinking="Let me think..."),
            StreamChunk(content="Final."),
        ]))

        message = await orchestrator.process_user_input("Why?")

        assert message.content == "Final."
        assert "Let me think..." in output.getvalue()

    @pytest.mark.asyncio
    async def test_empty_chunks_are_skipped(self, make_orchestrator, scripted_client):
        """Test that empty chunks contribute nothing."""
        orchestrator = make_orchestrator(scripted_client(["", "ok", StreamChunk()]))

        message = await orchestrator.process_user_input("Hi")

        assert message.content == "ok"

    @pytest.mark.asyncio
    async def test_client_error_keeps_user_message(self, make_orchestrator, scripted_client, session):
        """Test that a failed send keeps the user turn and adds no reply."""
        orchestrator = make_orchestrator(scripted_client(error=ConnectionError("connection refused")))

        with pytest.raises(SendError, match="connection refused"):
            await orchestrator.process_user_input("Hi")

        assert [(m.role, m.content) for m in session.messages] == [(Role.USER, "Hi")]

    @pytest.mark.asyncio
    async def test_timeout(self, make_orchestrator, scripted_client, config, session):
        """Test that a slow model raises InferenceTimeoutError."""
        slow = config.model_copy(update={"request_timeout": 0.05})
        orchestrator = make_orchestrator(scripted_client(["late"], delay=1.0), config_=slow)

        with pytest.raises(InferenceTimeoutError):
            await orchestrator.process_user_input("Hi")

        assert len(session.messages) == 1

    @pytest.mark.asyncio
    async def test_timeout_is_send_error(self, make_orchestrator, scripted_client, config):
        """Test that a timeout can be handled as a SendError."""
        slow = config.model_copy(update={"request_timeout": 0.05})
        orchestrator = make_orchestrator(scripted_client(["late"], delay=1.0), config_=slow)

        with pytest.raises(SendError):
            await orchestrator.process_user_input("Hi")

    @pytest.mark.asyncio
    async def test_no_messages(self, make_orchestrator, scripted_client):
        """Test that sending an empty history raises NoMessagesError."""
        client = scripted_client(["ok"])
        orchestrator = make_orchestrator(client)

        with pytest.raises(NoMessagesError):
            await orchestrator.send_message()

        assert client.requests == []

    @pytest.mark.asyncio
    async def test_empty_answer(self, make_orchestrator, scripted_client, session):
        """Test that an empty answer is an error and is not recorded."""
        orchestrator = make_orchestrator(scripted_client([StreamChunk(thinking="...")]))

        with pytest.raises(SendError, match="empty response"):
            await orchestrator.process_user_input("Hi")

        assert len(session.messages) == 1

    @pytest.mark.asyncio
    async def test_request_options(self, make_orchestrator, scripted_client, config):
        """Test that model settings reach the request."""
        tuned = config.model_copy(update={
            "max_response_size": 1024,
            "stop_sequences": ["Human:"],
            "think": "high",
            "system_prompt": "Be brief",
        })
        client = scripted_client(["ok"])
        orchestrator = make_orchestrator(client, config_=tuned)

        await orchestrator.process_user_input("Hi")

        request = client.requests[0]
        assert request.model == "test-model"
        assert request.temperature == 0.7
        assert request.max_tokens == 1024
        assert request.stop == ["Human:"]
        assert request.think == "high"
        assert request.messages[0].role == "system"
        assert request.messages[-1].content == "Hi"

    @pytest.mark.asyncio
    async def test_unlimited_response_size(self, make_orchestrator, scripted_client, config):
        """Test that a zero size cap and no stop sequences send nothing."""
        plain = config.model_copy(update={"max_response_size": 0, "stop_sequences": []})
        client = scripted_client(["ok"])
        orchestrator = make_orchestrator(client, config_=plain)

        await orchestrator.process_user_input("Hi")

        assert client.requests[0].max_tokens is None
        assert client.requests[0].stop is None

    @pytest.mark.asyncio
    async def test_prompt_mode_request(self, make_orchestrator, scripted_client, config):
        """Test that prompt mode sends a flattened prompt and a system prompt."""
        flat = config.model_copy(update={
            "context_mode": ContextMode.PROMPT,
            "system_prompt": "Be brief",
        })
        client = scripted_client(["ok"])
        orchestrator = make_orchestrator(client, config_=flat)

        await orchestrator.process_user_input("Hi")

        request = client.requests[0]
        assert request.messages is None
        assert request.prompt == "Current question: Hi"
        assert request.system == "Be brief"

    @pytest.mark.asyncio
    async def test_window_limits_context(self, make_orchestrator, scripted_client, config, session):
        """Test that history beyond the window is not sent."""
        narrow = config.model_copy(update={"ctx_size_limit": 2, "system_prompt": ""})
        for i in range(3):
            session.add_message(Role.USER, f"question {i}")
            session.add_message(Role.ASSISTANT, f"answer {i}")
        client = scripted_client(["ok"])
        orchestrator = make_orchestrator(client, config_=narrow)

        await orchestrator.process_user_input("latest")

        contents = [m.content for m in client.requests[0].messages]
        assert contents == ["question 2", "answer 2", "latest"]


class TestAutoSave:
    """Tests for auto-save during a conversation."""

    @pytest.mark.asyncio
    async def test_saves_at_policy_counts(self, make_orchestrator, scripted_client, recording_store, config):
        """Test that saves happen at 2, 4, 8 and 12 messages."""
        store = recording_store(config)
        orchestrator = make_orchestrator(scripted_client(["ok"]), store_=store)

        for i in range(6):
            await orchestrator.process_user_input(f"q{i}")

        assert store.saved_counts == [2, 4, 8, 12]
        assert store.exists("alice")

    @pytest.mark.asyncio
    async def test_save_failure_is_not_fatal(
        self, make_orchestrator, scripted_client, recording_store, config, output, session
    ):
        """Test that a failed save warns and the turn still succeeds."""
        store = recording_store(config, fail=True)
        orchestrator = make_orchestrator(scripted_client(["ok"]), store_=store)

        message = await orchestrator.process_user_input("Hi")

        assert message.content == "ok"
        assert len(session.messages) == 2
        assert "auto-save failed: disk full" in output.getvalue()


class TestRunLoop:
    """Tests for the interactive loop."""

    @pytest.mark.asyncio
    async def test_exit_command(self, make_orchestrator, scripted_client, output, session):
        """Test that 'exit' ends the loop without sending."""
        client = scripted_client(["ok"])
        orchestrator = make_orchestrator(client, lines=["exit"])

        await orchestrator.run()

        assert orchestrator.state == ChatState.CLOSED
        assert client.requests == []
        assert session.messages == []
        assert "Goodbye!" in output.getvalue()

    @pytest.mark.asyncio
    async def test_input_is_trimmed(self, make_orchestrator, scripted_client, session):
        """Test that surrounding whitespace is removed before matching and sending."""
        client = scripted_client(["ok"])
        orchestrator = make_orchestrator(client, lines=["  Hi  ", "  quit  "])

        await orchestrator.run()

        assert [m.content for m in session.messages] == ["Hi", "ok"]
        assert len(client.requests) == 1

    @pytest.mark.asyncio
    async def test_blank_line_exits(self, make_orchestrator, scripted_client, session):
        """Test that an empty line ends the loop."""
        orchestrator = make_orchestrator(scripted_client(["ok"]), lines=["   "])

        await orchestrator.run()

        assert orchestrator.state == ChatState.CLOSED
        assert session.messages == []

    @pytest.mark.asyncio
    async def test_uppercase_exit_is_sent(self, make_orchestrator, scripted_client, session):
        """Test that 'EXIT' is an ordinary message."""
        client = scripted_client(["ok"])
        orchestrator = make_orchestrator(client, lines=["EXIT", "exit"])

        await orchestrator.run()

        assert session.messages[0].content == "EXIT"
        assert len(client.requests) == 1

    @pytest.mark.asyncio
    async def test_end_of_input(self, make_orchestrator, scripted_client, session):
        """Test that end of input closes the loop like an exit command."""
        orchestrator = make_orchestrator(scripted_client(["ok"]), lines=["Hi"])

        await orchestrator.run()

        assert orchestrator.state == ChatState.CLOSED
        assert [m.content for m in session.messages] == ["Hi", "ok"]

    @pytest.mark.asyncio
    async def test_send_error_continues(self, make_orchestrator, scripted_client, output, session):
        """Test that a failed turn is reported and the loop keeps reading."""
        client = scripted_client(error=ConnectionError("connection refused"))
        orchestrator = make_orchestrator(client, lines=["Hi", "Again", "exit"])

        await orchestrator.run()

        assert len(client.requests) == 2
        assert [m.content for m in session.messages] == ["Hi", "Again"]
        assert "Error: failed to send message: connection refused" in output.getvalue()
        assert orchestrator.state == ChatState.CLOSED
