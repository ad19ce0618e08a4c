"""The two context renderers: structured message list and flattened prompt."""

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from ..llm.models import ChatMessage
from ..session.models import Message, Role
from .base import ContextPayload, ContextRenderer, select_window


class PromptLabels(BaseModel):
    """Localized text used by the flattened prompt."""

    model_config = ConfigDict(frozen=True)

    header: str
    user: str
    assistant: str
    current_question: str
    prefill_instruction: str  # formatted with {prefill}


PROMPT_LABELS: dict[str, PromptLabels] = {
    "en": PromptLabels(
        header="Previous conversation context:",
        user="User",
        assistant="Assistant",
        current_question="Current question",
        prefill_instruction='Begin your answer with: "{prefill}"',
    ),
    "ru": PromptLabels(
        header="Предыдущий контекст беседы:",
        user="Пользователь",
        assistant="Ассистент",
        current_question="Текущий вопрос",
        prefill_instruction='Начни свой ответ с фразы: "{prefill}"',
    ),
}


class MessageListRenderer(ContextRenderer):
    """Renders a system message followed by the window as {role, content} pairs."""

    def render(self, messages: Sequence[Message]) -> ContextPayload:
        prior, current = select_window(messages, self._limit)

        chat_messages: list[ChatMessage] = []
        if self._system_prompt:
            chat_messages.append(ChatMessage(role="system", content=self._system_prompt))
        for msg in [*prior, current]:
            chat_messages.append(ChatMessage(role=msg.role.value, content=msg.content))

        return ContextPayload(messages=chat_messages)


class FlattenedPromptRenderer(ContextRenderer):
    """Renders the window as one narrative prompt string.

    Example (English labels, prefill enabled):

        Previous conversation context:
        User: Hi
        Assistant: Hello!

        Current question: How are you?

        Begin your answer with: "Alright, "
    """

    def __init__(
        self,
        limit: int,
        system_prompt: str = "",
        prefill: str = "",
        use_prefill: bool = False,
        locale: str = "en",
    ):
        super().__init__(limit, system_prompt)
        if locale not in PROMPT_LABELS:
            raise ValueError(
                f"Unsupported prompt locale: {locale}. "
                f"Supported locales: {', '.join(sorted(PROMPT_LABELS))}"
            )
        self._labels = PROMPT_LABELS[locale]
        self._prefill = prefill
        self._use_prefill = use_prefill

    def _label(self, role: Role) -> str:
        return self._labels.user if role == Role.USER else self._labels.assistant

    def render(self, messages: Sequence[Message]) -> ContextPayload:
        prior, current = select_window(messages, self._limit)

        sections: list[str] = []
        if prior:
            lines = [self._labels.header]
            lines.extend(f"{self._label(msg.role)}: {msg.content}" for msg in prior)
            sections.append("\n".join(lines))

        sections.append(f"{self._labels.current_question}: {current.content}")

        if self._use_prefill and self._prefill:
            sections.append(self._labels.prefill_instruction.format(prefill=self._prefill))

        return ContextPayload(
            prompt="\n\n".join(sections),
            system=self._system_prompt or None,
        )
