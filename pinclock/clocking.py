"""PIN-verified clock actions on top of the clock API."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .api_client import ApiError, ClockApiClient
from .geolocation import CachedLocator, Coordinates, GeolocationError, Locator, NullLocator
from .session import ClockAction, PinValidationError, Verifier


logger = logging.getLogger("pinclock.clocking")


@dataclass(slots=True)
class ClockActionResult:
    success: bool
    data: Dict[str, Any] | None = None
    employee: Dict[str, Any] | None = None
    error: str | None = None

    def __bool__(self) -> bool:
        return self.success

    @property
    def employee_name(self) -> str:
        employee = self.employee or {}
        name = employee.get("firstName") or employee.get("name") or ""
        return str(name)


class PinClocking:
    """Verifies PINs and performs clock actions, tracking loading and error state."""

    def __init__(
        self,
        api: ClockApiClient,
        locator: Locator | None = None,
        *,
        pin_length: int = 4,
    ) -> None:
        self.api = api
        self.locator = locator if isinstance(locator, CachedLocator) else CachedLocator(locator or NullLocator())
        self.pin_length = pin_length
        self._lock = threading.Lock()
        self._loading = False
        self._error: str | None = None

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    def clear_error(self) -> None:
        self._error = None

    def _check_pin(self, pin: str) -> None:
        if len(pin) != self.pin_length or not (pin.isascii() and pin.isdigit()):
            raise PinValidationError(f"PIN must be exactly {self.pin_length} digits")

    def verify_pin(self, pin: str, site_id: str, action: ClockAction | str) -> Any:
        self._check_pin(pin)
        with self._lock:
            self._loading = True
            self._error = None
        try:
            return self.api.verify_pin(pin, site_id, ClockAction(action).value)
        except ApiError as exc:
            self._error = exc.message
            raise
        finally:
            self._loading = False

    def perform_clock_action(
        self,
        pin: str,
        site_id: str,
        action: ClockAction | str,
        coordinates: Coordinates | None = None,
    ) -> ClockActionResult:
        try:
            verification = self.verify_pin(pin, site_id, action)
            if not verification:
                return ClockActionResult(success=False, error="PIN verification failed")
            data = self.api.toggle_clock(pin, site_id, coordinates)
        except (ApiError, PinValidationError) as exc:
            message = str(exc)
            self._error = message
            return ClockActionResult(success=False, error=message)

        employee = verification.get("employee") if isinstance(verification, dict) else None
        logger.info("Clock action %s recorded for site %s", ClockAction(action).value, site_id)
        return ClockActionResult(success=True, data=data, employee=employee)

    def get_current_location(self) -> Coordinates:
        return self.locator.locate()

    def _optional_location(self) -> Optional[Coordinates]:
        try:
            return self.get_current_location()
        except GeolocationError as exc:
            logger.info("Proceeding without coordinates: %s", exc)
            return None

    def verifier_for(self, *, use_location: bool = True) -> Verifier:
        """Adapt this service into a session verifier that clocks on success."""

        def verify(pin: str, action: ClockAction, site_id: str) -> ClockActionResult:
            coordinates = self._optional_location() if use_location else None
            return self.perform_clock_action(pin, site_id, action, coordinates)

        return verify

