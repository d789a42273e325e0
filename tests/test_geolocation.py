"""Tests for the cached geolocation helpers."""
from __future__ import annotations

import pytest

from pinclock.geolocation import (
    CachedLocator,
    Coordinates,
    GeolocationError,
    NullLocator,
    StaticLocator,
)


class CountingLocator:
    def __init__(self, coordinates: Coordinates) -> None:
        self.coordinates = coordinates
        self.timeouts: list[float] = []

    def locate(self, timeout: float) -> Coordinates:
        self.timeouts.append(timeout)
        return self.coordinates


class BrokenLocator:
    def locate(self, timeout: float) -> Coordinates:
        raise OSError("gps offline")


def test_coordinates_range_checked() -> None:
    with pytest.raises(ValueError):
        Coordinates(91.0, 0.0)
    with pytest.raises(ValueError):
        Coordinates(0.0, -181.0)
    assert Coordinates(45.5, -73.6).to_dict() == {"latitude": 45.5, "longitude": -73.6}


def test_position_cached_for_five_minutes() -> None:
    now = [0.0]
    inner = CountingLocator(Coordinates(1.0, 2.0))
    locator = CachedLocator(inner, clock=lambda: now[0])

    assert locator.locate() == Coordinates(1.0, 2.0)
    now[0] = 299.0
    locator.locate()
    assert inner.timeouts == [10.0]

    now[0] = 301.0
    locator.locate()
    assert inner.timeouts == [10.0, 10.0]


def test_failures_are_wrapped() -> None:
    with pytest.raises(GeolocationError):
        CachedLocator(BrokenLocator()).locate()
    with pytest.raises(GeolocationError):
        CachedLocator(NullLocator()).locate()


def test_static_locator() -> None:
    coords = Coordinates(10.0, 20.0)
    assert StaticLocator(coords).locate(timeout=1.0) is coords
