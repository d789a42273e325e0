"""PinClock package initialization."""

__all__ = [
    "api_client",
    "clocking",
    "config",
    "geolocation",
    "lockout_state",
    "lockout_timer",
    "logging_setup",
    "pin_prompt",
    "session",
]
