"""
External collaborators: location, live-session broadcast and session upload.
"""

from .location import (
    Coordinate,
    Geocoder,
    LocationProvider,
    NominatimGeocoder,
    StaticLocationProvider,
    resolve_city,
)
from .live_session import LivePublisher, LiveSession, RealtimeDatabasePublisher
from .upload import HttpSessionUploader, SessionUploader, UploadResult, build_upload_payload

__all__ = [
    "Coordinate",
    "Geocoder",
    "LocationProvider",
    "NominatimGeocoder",
    "StaticLocationProvider",
    "resolve_city",
    "LivePublisher",
    "LiveSession",
    "RealtimeDatabasePublisher",
    "HttpSessionUploader",
    "SessionUploader",
    "UploadResult",
    "build_upload_payload",
]
