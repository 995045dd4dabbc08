"""
Device collaborators used by the attendance workflow.

The workflow only depends on the two protocols below; browsers, kiosks and
tests each provide their own implementation.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from app.core.exceptions import LocationUnavailable


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


class LocationProvider(Protocol):
    async def get_position(self) -> Coordinates:
        """
        Current device position.

        Raises:
            LocationDenied: if permission to read the position is refused
            LocationUnavailable: on timeout or sensor error
        """
        ...


class FaceCaptureProvider(Protocol):
    async def capture(self) -> Optional[bytes]:
        """A single encoded frame, or None when no usable frame was produced."""
        ...


class StaticLocationProvider:
    """Fixed position, for kiosks installed at a known site."""

    def __init__(self, lat: Optional[float], lng: Optional[float]):
        self.lat = lat
        self.lng = lng

    async def get_position(self) -> Coordinates:
        if self.lat is None or self.lng is None:
            raise LocationUnavailable("No site position configured")
        return Coordinates(lat=self.lat, lng=self.lng)


class FileFaceCapture:
    """Reads the latest frame written by an external camera process."""

    def __init__(self, path: Path):
        self.path = Path(path)

    async def capture(self) -> Optional[bytes]:
        try:
            frame = self.path.read_bytes()
        except FileNotFoundError:
            return None
        return frame or None
