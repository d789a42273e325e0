"""Position lookup used to tag clock actions with coordinates."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Protocol

from .config import DEFAULT_CONFIG


logger = logging.getLogger("pinclock.geolocation")


class GeolocationError(Exception):
    """Raised when the current position cannot be determined."""


@dataclass(frozen=True, slots=True)
class Coordinates:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90 <= self.latitude <= 90:
            raise ValueError("Latitude must be between -90 and 90")
        if not -180 <= self.longitude <= 180:
            raise ValueError("Longitude must be between -180 and 180")

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


class Locator(Protocol):
    def locate(self, timeout: float) -> Coordinates: ...


class StaticLocator:
    """Locator for fixed kiosks whose position is configured up front."""

    def __init__(self, coordinates: Coordinates) -> None:
        self.coordinates = coordinates

    def locate(self, timeout: float) -> Coordinates:
        return self.coordinates


class NullLocator:
    def locate(self, timeout: float) -> Coordinates:
        raise GeolocationError("Geolocation is not supported on this device")


class CachedLocator:
    """Wraps a locator with a timeout and a maximum position age."""

    def __init__(
        self,
        locator: Locator,
        *,
        timeout: float | None = None,
        max_age: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.locator = locator
        self.timeout = DEFAULT_CONFIG.geolocation_timeout_seconds if timeout is None else timeout
        self.max_age = DEFAULT_CONFIG.position_max_age_seconds if max_age is None else max_age
        self._clock = clock
        self._lock = threading.Lock()
        self._cached: Coordinates | None = None
        self._cached_at = 0.0

    def locate(self, timeout: float | None = None) -> Coordinates:
        with self._lock:
            if self._cached is not None and self._clock() - self._cached_at <= self.max_age:
                return self._cached
        try:
            position = self.locator.locate(self.timeout if timeout is None else timeout)
        except GeolocationError:
            raise
        except Exception as exc:
            raise GeolocationError("Unable to retrieve your location") from exc
        with self._lock:
            self._cached = position
            self._cached_at = self._clock()
        return position

    def invalidate(self) -> None:
        with self._lock:
            self._cached = None
