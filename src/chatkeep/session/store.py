"""JSON file session store.

Maps a user name to one session file under the configured directory.
The abstraction hides:
- Filename sanitization
- JSON layout and timestamp encoding
- How a save replaces the previous file

Only one process is expected to hold a given user's session at a time;
there is no file locking.
"""

import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from ..config import ChatConfig
from ..errors import (
    EmptyInputError,
    SaveError,
    SessionDirectoryError,
    SessionParseError,
    SessionReadError,
)
from .models import ChatSession

logger = logging.getLogger(__name__)

SESSION_FILE_MODE = 0o644

UNSAFE_FILENAME_CHARS = ' /\\:*?"<>|'

_SANITIZE_TABLE = str.maketrans({char: "_" for char in UNSAFE_FILENAME_CHARS})


def sanitize_user_name(user_name: str) -> str:
    """Replace filesystem-unsafe characters with underscores.

    Every other character, including non-Latin scripts, passes through.
    Applying it twice gives the same result as applying it once.
    """
    return user_name.translate(_SANITIZE_TABLE)


class SessionStore:
    """Loads and saves chat sessions as pretty-printed JSON files."""

    def __init__(self, config: ChatConfig):
        self._config = config

    @property
    def directory(self) -> Path:
        return Path(self._config.ctx_dir)

    def resolve_path(self, user_name: str) -> Path:
        """Return the session file path for a user name."""
        return self.directory / f"{sanitize_user_name(user_name)}{self._config.ctx_file_ext}"

    def exists(self, user_name: str) -> bool:
        return self.resolve_path(user_name).is_file()

    def ensure_directory(self) -> Path:
        """Create the sessions directory (and parents) if missing.

        Raises:
            SessionDirectoryError: If the directory cannot be created
        """
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SessionDirectoryError(f"cannot create chats directory {self.directory}: {e}") from e
        return self.directory

    def load_or_create(self, user_name: str) -> ChatSession:
        """Load the user's session, or start a new one if none is saved.

        Args:
            user_name: Display name of the user (unsanitized)

        Returns:
            Session with the live configuration attached

        Raises:
            EmptyInputError: If user_name is empty
            SessionDirectoryError: If the sessions directory cannot be created
            SessionReadError: If the session file cannot be read
            SessionParseError: If the session file is not a valid session
        """
        if not user_name:
            raise EmptyInputError("user name must not be empty")

        self.ensure_directory()
        path = self.resolve_path(user_name)

        if not path.exists():
            logger.debug("No session file at %s, starting a new session", path)
            return ChatSession(username=user_name, config=self._config)

        try:
            data = path.read_text(encoding="utf-8")
        except OSError as e:
            raise SessionReadError(f"cannot read session file {path}: {e}") from e

        try:
            session = ChatSession.model_validate_json(data)
        except ValidationError as e:
            raise SessionParseError(f"cannot parse session file {path}: {e}") from e

        session.config = self._config
        logger.debug("Loaded session %s with %d messages", path, len(session.messages))
        return session

    def save(self, session: ChatSession) -> Path:
        """Write the full session to its file, replacing any previous content.

        The data is written to a temporary file in the same directory and
        renamed over the target, so an interrupted save keeps the old file.

        Returns:
            Path of the written file

        Raises:
            SaveError: If serialization or the write fails
        """
        path = self.resolve_path(session.username)

        try:
            data = session.model_dump_json(indent=1)
        except (ValueError, TypeError) as e:
            raise SaveError(f"cannot serialize session: {e}") from e

        tmp_name: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
            os.chmod(tmp_name, SESSION_FILE_MODE)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise SaveError(f"cannot write session file {path}: {e}") from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

        logger.debug("Saved %d messages to %s", len(session.messages), path)
        return path
