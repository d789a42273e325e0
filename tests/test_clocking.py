"""Tests for PinClocking."""
from __future__ import annotations

from typing import Any, List

import pytest

from pinclock.api_client import ApiError
from pinclock.clocking import ClockActionResult, PinClocking
from pinclock.geolocation import Coordinates, StaticLocator
from pinclock.session import ClockAction, PinAttemptSession, PinValidationError


class FakeApi:
    def __init__(self, verification: Any = None, *, verify_error: str | None = None) -> None:
        self.verification = verification
        self.verify_error = verify_error
        self.toggles: List[tuple[str, str, Coordinates | None]] = []

    def verify_pin(self, pin: str, site_id: str, action: str) -> Any:
        if self.verify_error:
            raise ApiError(self.verify_error, status_code=403)
        return self.verification

    def toggle_clock(self, pin: str, site_id: str, coordinates: Coordinates | None = None) -> dict:
        self.toggles.append((pin, site_id, coordinates))
        return {"user": {"clockStatus": False}}


def test_perform_clock_action_success() -> None:
    api = FakeApi({"employee": {"firstName": "Ana"}})
    clocking = PinClocking(api)  # type: ignore[arg-type]
    result = clocking.perform_clock_action("1234", "3", ClockAction.CLOCK_IN, Coordinates(1.0, 2.0))
    assert result.success and bool(result)
    assert result.employee_name == "Ana"
    assert result.data == {"user": {"clockStatus": False}}
    assert api.toggles == [("1234", "3", Coordinates(1.0, 2.0))]


def test_rejected_pin_returns_failed_result() -> None:
    api = FakeApi(verify_error="Invalid PIN")
    clocking = PinClocking(api)  # type: ignore[arg-type]
    result = clocking.perform_clock_action("1234", "3", "clock-out")
    assert result == ClockActionResult(success=False, error="Invalid PIN")
    assert not result
    assert clocking.error == "Invalid PIN"
    assert clocking.loading is False
    assert api.toggles == []
    clocking.clear_error()
    assert clocking.error is None


def test_empty_verification_skips_toggle() -> None:
    api = FakeApi(None)
    result = PinClocking(api).perform_clock_action("1234", "3", "clock-in")  # type: ignore[arg-type]
    assert result.success is False
    assert api.toggles == []


def test_verify_pin_rejects_malformed_pin() -> None:
    clocking = PinClocking(FakeApi({}))  # type: ignore[arg-type]
    with pytest.raises(PinValidationError):
        clocking.verify_pin("12a4", "3", "clock-in")


def test_verifier_proceeds_without_location() -> None:
    api = FakeApi({"employee": {}})
    verifier = PinClocking(api).verifier_for()  # type: ignore[arg-type]
    assert verifier("1234", ClockAction.CLOCK_IN, "3")
    assert api.toggles == [("1234", "3", None)]


def test_verifier_drives_session() -> None:
    api = FakeApi({"employee": {"firstName": "Ana"}})
    clocking = PinClocking(api, StaticLocator(Coordinates(5.0, 6.0)))  # type: ignore[arg-type]
    with PinAttemptSession(clocking.verifier_for(), site_id="3") as session:
        session.on_digit_input("1234")
        assert session.result.employee_name == "Ana"
    assert api.toggles == [("1234", "3", Coordinates(5.0, 6.0))]


def test_failed_result_counts_as_failed_attempt() -> None:
    clocking = PinClocking(FakeApi(verify_error="Invalid PIN"))  # type: ignore[arg-type]
    with PinAttemptSession(clocking.verifier_for(use_location=False), site_id="3") as session:
        session.on_digit_input("1234")
        assert session.attempt_count == 1
        assert session.result is None
