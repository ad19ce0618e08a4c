"""Error taxonomy for chatkeep.

Every error raised by the library derives from ChatKeepError. The ``fatal``
flag separates errors that abort startup from errors the chat loop reports
and recovers from.
"""


class ChatKeepError(Exception):
    """Base class for all chatkeep errors."""

    fatal: bool = False


class ConfigError(ChatKeepError):
    """Configuration could not be loaded or validated."""

    fatal = True


class SessionInitError(ChatKeepError):
    """A session could not be created or loaded."""

    fatal = True


class SessionDirectoryError(SessionInitError):
    """The sessions directory could not be created."""


class SessionReadError(SessionInitError):
    """A session file exists but could not be read."""


class SessionParseError(SessionInitError):
    """A session file was read but does not hold a valid session."""


class ClientInitError(ChatKeepError):
    """The inference client could not be constructed."""

    fatal = True


class EmptyInputError(ChatKeepError):
    """A chat was started without a user name."""

    fatal = True


class EmptyContentError(ChatKeepError, ValueError):
    """A message was created with empty content."""


class SendError(ChatKeepError):
    """A turn could not be sent to, or answered by, the model."""


class NoMessagesError(SendError):
    """There are no messages to send."""


class InferenceTimeoutError(SendError):
    """The model did not finish answering within the request timeout."""


class SaveError(ChatKeepError):
    """A session could not be written to disk."""
