"""REST client for the clock and PIN verification endpoints."""
from __future__ import annotations

import logging
from typing import Any, Dict, List

import requests

from .config import DEFAULT_CONFIG
from .geolocation import Coordinates


logger = logging.getLogger("pinclock.api_client")


class ApiError(Exception):
    """Raised when the clock API rejects a request or cannot be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(ApiError):
    """Raised on HTTP 401 responses."""

    @property
    def expired(self) -> bool:
        return "expired" in self.message.lower()


class ClockApiClient:
    """Thin wrapper around the clock server's JSON endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        http_session: requests.Session | None = None,
    ) -> None:
        self.base_url = (base_url or DEFAULT_CONFIG.api_base_url).rstrip("/")
        self.timeout = timeout or DEFAULT_CONFIG.request_timeout_seconds
        self.http = http_session or requests.Session()
        self.http.headers.update({"Content-Type": "application/json"})

    def _request(
        self,
        method: str,
        path: str,
        *,
        fallback: str,
        json_body: Dict[str, Any] | None = None,
        params: Dict[str, Any] | None = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(
                method, url, json=json_body, params=params, timeout=self.timeout
            )
        except requests.exceptions.RequestException as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(fallback) from exc

        payload = self._decode(response)
        if response.status_code == 401:
            message = str(payload.get("message") or "Authentication required")
            error = AuthenticationError(message, status_code=401)
            if error.expired:
                logger.warning("Session token expired while calling %s", path)
            else:
                logger.error("Authentication error on %s: %s", path, message)
            raise error
        if not response.ok:
            message = str(payload.get("message") or fallback)
            logger.warning("%s %s returned %s: %s", method, path, response.status_code, message)
            raise ApiError(message, status_code=response.status_code)
        return payload

    @staticmethod
    def _decode(response: requests.Response) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {"data": payload}

    def verify_pin(self, pin: str, site_id: str, action: str) -> Any:
        payload = self._request(
            "POST",
            "/pin/verify",
            fallback="PIN verification failed",
            json_body={"pin": pin, "siteId": site_id, "action": action},
        )
        return payload.get("data")

    def toggle_clock(
        self, pin: str, site_id: str, coordinates: Coordinates | None = None
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"pin": pin, "siteId": site_id}
        if coordinates is not None:
            body.update(coordinates.to_dict())
        return self._request(
            "POST", "/clock/toggle-clock", fallback="Clock action failed", json_body=body
        )

    def validate_pin(self, pin: str, site_id: str) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/clock/validate-pin",
            fallback="PIN validation failed",
            json_body={"pin": pin, "siteId": site_id},
        )

    def get_sites(self) -> List[Dict[str, Any]]:
        payload = self._request("GET", "/clock/sites", fallback="Error fetching sites")
        return list(payload.get("sites") or [])

    def web_toggle(self, coordinates: Coordinates | None = None) -> Dict[str, Any]:
        body = coordinates.to_dict() if coordinates is not None else {}
        return self._request(
            "POST", "/clock/web-toggle", fallback="Clock action failed", json_body=body
        )

    def get_recent_logs(self, limit: int = 7) -> List[Dict[str, Any]]:
        payload = self._request(
            "GET",
            "/clock/my-recent",
            fallback="Error fetching recent logs",
            params={"limit": limit},
        )
        return list(payload.get("logs") or [])
