"""In-memory per-user conversation session store.

State lives only as long as the process. For Cloud Run with multiple
instances, consider using Redis or a database.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Literal

logger = logging.getLogger(__name__)

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Message:
    """Single role-tagged message in a transcript."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only copy of a session at a point in time."""

    name: str
    messages: tuple[Message, ...]


class Session:
    """Named, append-only transcript owned by a single user.

    The lock serializes chat turns on this session only; other sessions,
    including other sessions of the same user, have their own lock.
    """

    def __init__(self, name: str):
        self.name = name
        self.lock = asyncio.Lock()
        self._messages: list[Message] = []

    def transcript(self) -> tuple[Message, ...]:
        """Return the messages, oldest first."""
        return tuple(self._messages)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(name=self.name, messages=self.transcript())

    def _append(self, message: Message) -> None:
        self._messages.append(message)

    def __repr__(self) -> str:
        return f"Session(name={self.name!r}, messages={len(self._messages)})"


class SessionStore:
    """Owns every user's ordered collection of named sessions.

    A user's collection is created on their first chat action and never
    before. Sessions are never renamed, removed, or reordered.
    """

    def __init__(self, default_session_name: str = "New Chat"):
        self.default_session_name = default_session_name
        # user_id -> sessions in creation order
        self._sessions: dict[str, list[Session]] = {}
        self._guard = threading.Lock()

    def resolve_name(self, session_name: str | None) -> str:
        """Map an empty or missing session name onto the default name."""
        if session_name is None or not session_name.strip():
            return self.default_session_name
        return session_name

    def get_or_create(self, user_id: str, session_name: str | None = None) -> Session:
        """Return the user's session with this name, creating it if needed."""
        name = self.resolve_name(session_name)
        with self._guard:
            sessions = self._sessions.setdefault(user_id, [])
            for session in sessions:
                if session.name == name:
                    return session
            session = Session(name)
            sessions.append(session)
        logger.info(f"Created session '{name}' for user {user_id} ({len(sessions)} total)")
        return session

    def append(self, session: Session, message: Message) -> None:
        """Append a message to the session's transcript."""
        with self._guard:
            session._append(message)

    def get(self, user_id: str, session_name: str | None) -> SessionSnapshot | None:
        """Look up a session without creating it."""
        name = self.resolve_name(session_name)
        with self._guard:
            for session in self._sessions.get(user_id, ()):
                if session.name == name:
                    return session.snapshot()
        return None

    def list_sessions(self, user_id: str) -> tuple[SessionSnapshot, ...]:
        """Return snapshots of all the user's sessions in creation order."""
        with self._guard:
            return tuple(session.snapshot() for session in self._sessions.get(user_id, ()))

    def has_user(self, user_id: str) -> bool:
        """Whether the user has a collection yet. Introspection only; chat paths never call it."""
        with self._guard:
            return user_id in self._sessions
