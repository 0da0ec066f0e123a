"""
Session upload collaborator.

Uploads are one-shot HTTP POSTs; the outcome is reported, never retried.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests

from app.utils.logger import get_logger
from app.utils.time_utils import time_segment
from sessions.schemas import Session, WebSession

logger = get_logger(__name__)


@dataclass(frozen=True)
class UploadResult:
    """Outcome of one upload attempt."""
    success: bool
    message: str


class SessionUploader(ABC):
    """Upload endpoint contract."""

    @abstractmethod
    def upload(self, summary: Dict[str, Any], per_lap: List[Dict[str, Any]]) -> UploadResult:
        """Send a session summary with its per-lap breakdown."""

    @abstractmethod
    def upload_web_session(self, web_session: WebSession) -> UploadResult:
        """Send a manually entered session."""


def build_upload_payload(
    session: Session,
    username: Optional[str] = None,
    device: str = "python",
) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    """
    Split a session into the upload summary and per-lap breakdown.

    Lap ``i`` in ``lap_times`` owns sector bucket ``i + 1``; bucket 0 holds
    sectors of the lap still in progress at save time and is sent with the
    summary.

    Returns:
        (summary, per_lap) tuple
    """
    summary = {
        "sessionId": session.id,
        "date": session.date.isoformat(),
        "username": username or "",
        "device": device,
        "location": session.location,
        "fastestLap": session.fastest_lap,
        "slowestLap": session.slowest_lap,
        "averageLap": session.average_lap,
        "consistency": session.consistency,
        "totalTime": session.total_time,
        "lapCount": session.lap_count,
        "openSectors": list(session.sector_times[0]) if session.sector_times else [],
    }

    per_lap = []
    for i, label in enumerate(session.lap_times):
        bucket = session.sector_times[i + 1] if len(session.sector_times) > i + 1 else []
        per_lap.append({
            "lap": label.split(":", 1)[0],
            "time": time_segment(label),
            "sectors": [time_segment(sector) for sector in bucket],
        })

    return summary, per_lap


class HttpSessionUploader(SessionUploader):
    """JSON-over-HTTP uploader; only a 2xx response counts as success."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        device: str = "python",
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.device = device
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, upload_settings) -> "HttpSessionUploader":
        return cls(
            url=upload_settings.url,
            timeout=upload_settings.timeout_seconds,
            device=upload_settings.device,
        )

    def _post(self, payload: Dict[str, Any]) -> UploadResult:
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Upload to {self.url} failed: {e}")
            return UploadResult(success=False, message=str(e))

        if not 200 <= response.status_code < 300:
            logger.warning(f"Upload to {self.url} rejected with HTTP {response.status_code}")
            return UploadResult(success=False, message=f"Server error ({response.status_code})")

        logger.info(f"Uploaded payload to {self.url}")
        return UploadResult(success=True, message="Upload successful")

    def upload(self, summary: Dict[str, Any], per_lap: List[Dict[str, Any]]) -> UploadResult:
        return self._post({**summary, "laps": per_lap})

    def upload_web_session(self, web_session: WebSession) -> UploadResult:
        return self._post({
            "duration": web_session.duration,
            "notes": web_session.notes,
            "timestamp": web_session.timestamp.timestamp(),
            "device": self.device,
        })
