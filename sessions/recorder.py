"""
Save workflow tying the stopwatch, analytics, persistence and collaborators.

Saving is two-phase: the session is persisted at once without a location, then
a bounded reverse-geocoding lookup patches the location in if it succeeds. A
slow or failing lookup never delays or drops the save.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Set, Tuple
import asyncio

from app.utils.logger import get_logger
from integrations.location import Coordinate, Geocoder, LocationProvider, resolve_city
from integrations.upload import SessionUploader, UploadResult, build_upload_payload
from stopwatch.engine import Stopwatch
from .analytics import REFERENCE_STD_DEV, build_session
from .repository import SessionRepository
from .schemas import Session

logger = get_logger(__name__)


@dataclass(frozen=True)
class SaveResult:
    """A saved session and whether it reached durable storage."""
    session: Session
    persisted: bool


class SessionRecorder:
    """Builds sessions from the live stopwatch and stores them."""

    def __init__(
        self,
        stopwatch: Stopwatch,
        repository: SessionRepository,
        location_provider: Optional[LocationProvider] = None,
        geocoder: Optional[Geocoder] = None,
        uploader: Optional[SessionUploader] = None,
        geocode_timeout: float = 5.0,
        reference_std_dev: float = REFERENCE_STD_DEV,
        username: str = "",
        device: str = "python",
    ):
        """
        Initialize recorder.

        Args:
            stopwatch: Stopwatch whose buffers are saved
            repository: Session collection to append to
            location_provider: Optional source of the current coordinate
            geocoder: Optional reverse geocoder for the city name
            uploader: Optional upload endpoint for save-and-upload
            geocode_timeout: Seconds allowed for the location lookup
            reference_std_dev: Consistency calibration constant
            username: Username attached to uploads
            device: Device tag attached to uploads
        """
        self.stopwatch = stopwatch
        self.repository = repository
        self.location_provider = location_provider
        self.geocoder = geocoder
        self.uploader = uploader
        self.geocode_timeout = geocode_timeout
        self.reference_std_dev = reference_std_dev
        self.username = username
        self.device = device
        self._location_tasks: Set[asyncio.Task] = set()

    def save(self) -> Optional[SaveResult]:
        """
        Save the current run.

        Returns:
            None when no lap has been completed (nothing is stored)
        """
        session = build_session(self.stopwatch.snapshot(), None, self.reference_std_dev)
        if session is None:
            return None

        persisted = self.repository.save(session)
        if not persisted:
            logger.error(f"Session {session.id} kept in memory only: persistence failed")

        self._schedule_location(session)
        return SaveResult(session=session, persisted=persisted)

    def _current_coordinate(self) -> Optional[Coordinate]:
        if self.location_provider is None or self.geocoder is None:
            return None
        try:
            return self.location_provider.current_coordinate()
        except Exception as e:
            logger.warning(f"Location provider failed: {e}")
            return None

    def _schedule_location(self, session: Session) -> None:
        coordinate = self._current_coordinate()
        if coordinate is None:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; session saved without location")
            return

        task = loop.create_task(self._locate(session.id, coordinate))
        self._location_tasks.add(task)
        task.add_done_callback(self._location_tasks.discard)

    async def _locate(self, session_id: str, coordinate: Coordinate) -> None:
        city = await resolve_city(self.geocoder, coordinate, self.geocode_timeout)
        if city:
            self.repository.update_location(session_id, city)

    async def wait_for_location(self) -> None:
        """Wait for pending location lookups (each is bounded by the timeout)."""
        if self._location_tasks:
            await asyncio.gather(*list(self._location_tasks), return_exceptions=True)

    async def save_with_location(self) -> Optional[Session]:
        """Save, then wait for the location patch; returns the stored record."""
        result = self.save()
        if result is None:
            return None
        await self.wait_for_location()
        return self.repository.get(result.session.id) or result.session

    async def save_and_upload(self) -> Tuple[Optional[SaveResult], Optional[UploadResult]]:
        """
        Save, upload, and reset the stopwatch only if the upload succeeded.

        Returns:
            (save result, upload result); both None when there was nothing to save
        """
        result = self.save()
        if result is None:
            return None, None

        if self.uploader is None:
            return result, UploadResult(success=False, message="No upload endpoint configured")

        await self.wait_for_location()
        session = self.repository.get(result.session.id) or result.session
        summary, per_lap = build_upload_payload(session, self.username, self.device)

        try:
            upload = await asyncio.to_thread(self.uploader.upload, summary, per_lap)
        except Exception as e:
            logger.warning(f"Upload raised: {e}")
            upload = UploadResult(success=False, message=str(e))

        if upload.success:
            self.stopwatch.reset()
        return result, upload
