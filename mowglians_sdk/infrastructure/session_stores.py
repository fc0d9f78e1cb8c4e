"""Persisted session store implementations."""

from __future__ import annotations

from pathlib import Path

from ..domain.exceptions import SessionError
from ..domain.models import SerializedSession
from ..ports.logger import LoggerPort
from ..ports.session_store import SessionStorePort
from .serialization import detect_and_deserialize, serialize_to_json, serialize_to_msgpack


class InMemorySessionStore(SessionStorePort):
    """Keeps the session for the lifetime of the process."""

    def __init__(self, initial: SerializedSession | None = None):
        self._record = initial

    def get(self) -> SerializedSession | None:
        """Return the stored session."""
        return self._record

    def set(self, session: SerializedSession) -> None:
        """Store the session."""
        self._record = session

    def clear(self) -> None:
        """Remove the stored session."""
        self._record = None


class FileSessionStore(SessionStorePort):
    """Keeps the session in a file, as JSON or MessagePack.

    The format is detected when reading, so switching ``use_msgpack`` does
    not invalidate an existing file.
    """

    def __init__(self, path: Path, use_msgpack: bool = False, logger: LoggerPort | None = None):
        self._path = Path(path)
        self._use_msgpack = use_msgpack
        self._logger = logger

    @property
    def path(self) -> Path:
        """File backing the store."""
        return self._path

    def get(self) -> SerializedSession | None:
        """Read the stored session.

        Raises:
            SessionError: If the file exists but cannot be read or decoded
        """
        if not self._path.exists():
            return None
        try:
            data = self._path.read_bytes()
        except OSError as e:
            raise SessionError(f"Cannot read session file {self._path}: {e}") from e
        return detect_and_deserialize(data, SerializedSession)

    def set(self, session: SerializedSession) -> None:
        """Write the session, replacing the file atomically."""
        data = serialize_to_msgpack(session) if self._use_msgpack else serialize_to_json(session)
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(data)
            tmp.replace(self._path)
        except OSError as e:
            raise SessionError(f"Cannot write session file {self._path}: {e}") from e
        if self._logger:
            self._logger.debug("Session persisted", path=str(self._path))

    def clear(self) -> None:
        """Delete the session file if present."""
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise SessionError(f"Cannot remove session file {self._path}: {e}") from e
