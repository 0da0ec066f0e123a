"""
Manually entered sessions ("web sessions") with per-entry upload.
"""

from typing import List, Optional

from app.utils.logger import get_logger
from integrations.upload import SessionUploader, UploadResult
from .repository import load_models, persist_models
from .schemas import WebSession
from .store import KeyValueStore

logger = get_logger(__name__)

WEB_SESSIONS_KEY = "webSessions"


class WebSessionBook:
    """Persisted list of web sessions."""

    def __init__(self, store: KeyValueStore, key: str = WEB_SESSIONS_KEY):
        self.store = store
        self.key = key
        self.entries: List[WebSession] = load_models(store, key, WebSession)

    def _persist(self) -> bool:
        return persist_models(self.store, self.key, self.entries)

    def add(self, duration: float, notes: str = "") -> WebSession:
        """
        Record a new entry.

        Raises:
            pydantic.ValidationError: If the duration is negative
        """
        entry = WebSession(duration=duration, notes=notes)
        self.entries.append(entry)
        self._persist()
        return entry

    def get(self, entry_id: str) -> Optional[WebSession]:
        return next((e for e in self.entries if e.id == entry_id), None)

    def delete(self, entry_id: str) -> bool:
        before = len(self.entries)
        self.entries = [e for e in self.entries if e.id != entry_id]
        if len(self.entries) == before:
            return False
        return self._persist()

    def upload(self, entry_id: str, uploader: SessionUploader) -> UploadResult:
        """
        Upload one entry and mark it uploaded on success.

        Already uploaded entries are not sent again.
        """
        entry = self.get(entry_id)
        if entry is None:
            return UploadResult(success=False, message=f"Unknown web session {entry_id}")
        if entry.is_uploaded:
            return UploadResult(success=True, message="Already uploaded")

        result = uploader.upload_web_session(entry)
        if result.success:
            self.entries = [
                e.model_copy(update={"is_uploaded": True}) if e.id == entry_id else e
                for e in self.entries
            ]
            self._persist()
            logger.info(f"Web session {entry_id} uploaded")
        return result
