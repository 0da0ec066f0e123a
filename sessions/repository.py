"""
Session persistence.

The whole collection is serialised to JSON and written to a single key on every
change. Reads never raise: a missing or corrupt slot loads as an empty list.
"""

from __future__ import annotations
from typing import List, Optional, Sequence, Type, TypeVar
import json

from pydantic import BaseModel, TypeAdapter, ValidationError

from app.utils.logger import get_logger
from .schemas import Session
from .store import KeyValueStore

logger = get_logger(__name__)

SESSIONS_KEY = "savedSessions"

ModelT = TypeVar("ModelT", bound=BaseModel)


def load_models(store: KeyValueStore, key: str, model: Type[ModelT]) -> List[ModelT]:
    """
    Decode a stored JSON array of ``model`` records.

    Args:
        store: Key-value store
        key: Slot holding the array
        model: Pydantic model of each element

    Returns:
        Decoded records, or an empty list if the slot is absent or undecodable
    """
    try:
        raw = store.get(key)
    except Exception as e:
        logger.error(f"Failed to read '{key}': {e}", exc_info=True)
        return []

    if raw is None:
        return []

    try:
        return TypeAdapter(List[model]).validate_json(raw)  # type: ignore[valid-type]
    except (ValidationError, ValueError) as e:
        logger.warning(f"Discarding undecodable '{key}' slot: {e}")
        return []


def persist_models(store: KeyValueStore, key: str, records: Sequence[BaseModel]) -> bool:
    """
    Encode ``records`` as a JSON array and replace the slot.

    Returns:
        True on success, False if encoding or the backend write failed
    """
    try:
        payload = json.dumps([r.model_dump(mode="json", by_alias=True) for r in records])
        store.set(key, payload)
    except Exception as e:
        logger.error(f"Failed to persist {len(records)} records to '{key}': {e}", exc_info=True)
        return False

    logger.debug(f"Persisted {len(records)} records to '{key}'")
    return True


def load_sessions(store: KeyValueStore, key: str = SESSIONS_KEY) -> List[Session]:
    return load_models(store, key, Session)


def persist_sessions(store: KeyValueStore, sessions: Sequence[Session], key: str = SESSIONS_KEY) -> bool:
    return persist_models(store, key, sessions)


class SessionRepository:
    """Ordered, persisted collection of saved sessions."""

    def __init__(self, store: KeyValueStore, key: str = SESSIONS_KEY):
        """
        Initialize repository and load the stored collection.

        Args:
            store: Backing key-value store
            key: Slot holding the serialised collection
        """
        self.store = store
        self.key = key
        self.sessions: List[Session] = load_sessions(store, key)

        logger.info(f"Loaded {len(self.sessions)} saved sessions")

    def __len__(self) -> int:
        return len(self.sessions)

    def __iter__(self):
        return iter(list(self.sessions))

    def reload(self) -> List[Session]:
        self.sessions = load_sessions(self.store, self.key)
        return self.sessions

    def persist(self) -> bool:
        return persist_sessions(self.store, self.sessions, self.key)

    def get(self, session_id: str) -> Optional[Session]:
        for session in self.sessions:
            if session.id == session_id:
                return session
        return None

    def find(self, id_prefix: str) -> Optional[Session]:
        """Look up a session by a unique id prefix (as typed on the CLI)."""
        matches = [s for s in self.sessions if s.id.startswith(id_prefix)]
        if len(matches) == 1:
            return matches[0]
        return None

    def save(self, session: Session) -> bool:
        """
        Append a session and persist the collection.

        The in-memory collection keeps the session even when persisting fails.

        Returns:
            Whether the write reached the store
        """
        self.sessions.append(session)
        ok = self.persist()
        if ok:
            logger.info(f"Saved session {session.id} ({len(self.sessions)} total)")
        return ok

    def delete(self, session_id: str) -> bool:
        """
        Remove a session and persist the collection.

        Returns:
            False if the session does not exist or the write failed
        """
        before = len(self.sessions)
        self.sessions = [s for s in self.sessions if s.id != session_id]
        if len(self.sessions) == before:
            logger.debug(f"Delete ignored: unknown session {session_id}")
            return False

        logger.info(f"Deleted session {session_id}")
        return self.persist()

    def update_location(self, session_id: str, location: str) -> bool:
        """
        Replace a session with a copy carrying ``location`` and persist.

        Returns:
            False if the session no longer exists or the write failed
        """
        for i, session in enumerate(self.sessions):
            if session.id == session_id:
                self.sessions[i] = session.model_copy(update={"location": location})
                if not self.persist():
                    logger.error(f"Location of session {session_id} kept in memory only")
                    return False
                logger.info(f"Session {session_id} located at {location}")
                return True

        logger.debug(f"Location patch dropped: session {session_id} was deleted")
        return False
