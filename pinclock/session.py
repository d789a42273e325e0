"""PIN entry session with attempt counting, timed lockout, and cancellation."""
from __future__ import annotations

import enum
import logging
import math
import re
import threading
import time
from typing import Any, Callable

from .config import DEFAULT_CONFIG, PinClockConfig
from .lockout_state import LockoutStateStore
from .lockout_timer import RepeatingTimer, TimerFactory, TimerHandle


logger = logging.getLogger("pinclock.session")

INVALID_LENGTH_MESSAGE = "PIN must be exactly {length} digits"


class PinLockedError(Exception):
    """Raised when PIN entry is refused during a lockout."""


class PinValidationError(Exception):
    """Raised when a PIN is malformed."""


class ClockAction(str, enum.Enum):
    CLOCK_IN = "clock-in"
    CLOCK_OUT = "clock-out"

    @property
    def label(self) -> str:
        return "Clock In" if self is ClockAction.CLOCK_IN else "Clock Out"


class SessionState(enum.Enum):
    IDLE = "idle"
    ENTERING = "entering"
    SUBMITTING = "submitting"
    LOCKED = "locked"
    CANCELLED = "cancelled"


class SubmitOutcome(enum.Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    LOCKED_OUT = "locked_out"
    INVALID = "invalid"
    LOCKED = "locked"
    BUSY = "busy"
    CLOSED = "closed"


Verifier = Callable[[str, ClockAction, str], Any]


def format_lockout_time(ms: int) -> str:
    """Render remaining lockout milliseconds as ``m:ss``."""
    ms = max(0, ms)
    minutes = ms // 60000
    seconds = (ms % 60000) // 1000
    return f"{minutes}:{seconds:02d}"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


class PinAttemptSession:
    """One interactive sequence of PIN attempts for a single clock action.

    The session owns the PIN buffer, the failed-attempt counter and the lockout
    countdown. Verification is delegated to ``verifier(pin, action, site_id)``;
    a truthy return value is a success, a falsy value or any exception is a
    failed attempt. After ``max_attempts`` failures the session locks for
    ``lockout_seconds`` and refuses input, submission and cancellation until a
    one-second tick has counted the lockout down to zero.

    A successful attempt closes the session, so the verifier runs at most once
    with a correct PIN. Callers must ``close()`` the session (or use it as a context manager) so
    that a running lockout timer never outlives it.
    """

    def __init__(
        self,
        verifier: Verifier,
        *,
        action: ClockAction | str = ClockAction.CLOCK_IN,
        site_id: str = "",
        config: PinClockConfig | None = None,
        lockout_store: LockoutStateStore | None = None,
        timer_factory: TimerFactory | None = None,
        on_success: Callable[[Any], None] | None = None,
        on_cancel: Callable[[], None] | None = None,
        on_focus_requested: Callable[[], None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self.action = ClockAction(action)
        self.site_id = str(site_id)
        self._verifier = verifier
        self._store = lockout_store
        self._timer_factory: TimerFactory = timer_factory or RepeatingTimer
        self._on_success = on_success
        self._on_cancel = on_cancel
        self._on_focus_requested = on_focus_requested
        self._clock = clock
        self._input_pattern = re.compile(rf"[0-9]{{0,{self.config.pin_length}}}")

        self._lock = threading.RLock()
        self._unlocked = threading.Condition(self._lock)
        self._timer: TimerHandle | None = None
        self._pin = ""
        self._attempt_count = 0
        self._locked = False
        self._lockout_remaining_ms = 0
        self._last_error = ""
        self._focus_requests = 0
        self._state = SessionState.IDLE
        self._submitting = False
        self._closed = False
        self._result: Any = None

        self._restore_lockout()

    # --- read-only view ------------------------------------------------------
    @property
    def pin(self) -> str:
        return self._pin

    @property
    def attempt_count(self) -> int:
        return self._attempt_count

    @property
    def max_attempts(self) -> int:
        return self.config.max_attempts

    @property
    def is_locked(self) -> bool:
        return self._locked

    @property
    def lockout_remaining_ms(self) -> int:
        return self._lockout_remaining_ms

    @property
    def last_error(self) -> str:
        return self._last_error

    @property
    def focus_requests(self) -> int:
        return self._focus_requests

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def result(self) -> Any:
        """Value returned by the verifier on the successful attempt, if any."""
        return self._result

    @property
    def input_enabled(self) -> bool:
        return not (self._locked or self._submitting or self._closed)

    def lockout_display(self) -> str:
        return format_lockout_time(self._lockout_remaining_ms)

    def attempts_display(self) -> str:
        if self._attempt_count == 0 or self._locked:
            return ""
        return f"Failed attempts: {self._attempt_count}/{self.max_attempts}"

    # --- input ---------------------------------------------------------------
    def on_digit_input(self, value: str) -> bool:
        """Replace the PIN buffer with ``value``; a full buffer submits it.

        Returns False, leaving the session untouched, when ``value`` is not
        0-4 digits or input is currently disabled.
        """
        if not isinstance(value, str) or not self._input_pattern.fullmatch(value):
            return False
        with self._lock:
            if not self.input_enabled:
                return False
            self._pin = value
            self._last_error = ""
            if value and self._state is SessionState.IDLE:
                self._state = SessionState.ENTERING
            full = len(value) == self.config.pin_length
        if full:
            self.submit()
        return True

    def submit(self) -> SubmitOutcome:
        timer = None
        with self._lock:
            if self._closed:
                return SubmitOutcome.CLOSED
            if self._submitting:
                logger.debug("Ignoring submit for site %s; verification in flight", self.site_id)
                return SubmitOutcome.BUSY
            if self._locked:
                return SubmitOutcome.LOCKED
            if len(self._pin) != self.config.pin_length:
                self._last_error = INVALID_LENGTH_MESSAGE.format(length=self.config.pin_length)
                return SubmitOutcome.INVALID
            self._submitting = True
            self._state = SessionState.SUBMITTING
            pin = self._pin

        try:
            result = self._verifier(pin, self.action, self.site_id)
        except Exception as exc:
            logger.warning(
                "PIN verification for site %s (%s) raised: %s",
                self.site_id,
                self.action.value,
                exc,
            )
            result = None
        except BaseException:
            with self._lock:
                self._submitting = False
                self._state = SessionState.ENTERING
            raise

        with self._lock:
            self._submitting = False
            if self._closed:
                logger.info("Session for site %s closed during verification", self.site_id)
                return SubmitOutcome.CLOSED
            if result:
                self._pin = ""
                self._last_error = ""
                self._attempt_count = 0
                self._state = SessionState.IDLE
                self._result = result
                self._closed = True
                timer = self._take_timer()
                self._unlocked.notify_all()
                outcome = SubmitOutcome.SUCCEEDED
            else:
                outcome = self._handle_failed_attempt()

        if outcome is SubmitOutcome.SUCCEEDED:
            logger.info("PIN accepted for %s at site %s", self.action.value, self.site_id)
            if timer is not None:
                timer.cancel()
            if self._store is not None:
                self._store.clear(self.site_id)
            if self._on_success:
                self._on_success(result)
            return SubmitOutcome.SUCCEEDED

        if outcome is SubmitOutcome.LOCKED_OUT:
            self._start_timer()
        if self._on_focus_requested:
            self._on_focus_requested()
        return outcome

    def _handle_failed_attempt(self) -> SubmitOutcome:
        self._attempt_count += 1
        self._pin = ""
        self._focus_requests += 1
        if self._attempt_count >= self.max_attempts:
            self._enter_lockout(self.config.lockout_duration_ms)
            logger.warning(
                "Site %s locked for %ss after %s failed attempts",
                self.site_id,
                self.config.lockout_seconds,
                self._attempt_count,
            )
            if self._store is not None:
                self._store.record_lockout(
                    self.site_id, self._clock() + self.config.lockout_seconds
                )
            return SubmitOutcome.LOCKED_OUT

        remaining = self.max_attempts - self._attempt_count
        self._last_error = f"Invalid PIN. {_plural(remaining, 'attempt')} remaining."
        self._state = SessionState.ENTERING
        logger.info(
            "Failed PIN attempt %s/%s for site %s",
            self._attempt_count,
            self.max_attempts,
            self.site_id,
        )
        return SubmitOutcome.FAILED

    def _enter_lockout(self, duration_ms: int) -> None:
        self._locked = True
        self._pin = ""
        self._lockout_remaining_ms = duration_ms
        minutes = math.ceil(duration_ms / 60000)
        self._last_error = (
            f"Too many failed attempts. Please wait {_plural(minutes, 'minute')}."
        )
        self._state = SessionState.LOCKED

    def _restore_lockout(self) -> None:
        if self._store is None:
            return
        seconds = self._store.remaining_seconds(self.site_id, self._clock())
        if seconds <= 0:
            self._store.clear(self.site_id)
            return
        logger.info("Restoring lockout for site %s (%ss remaining)", self.site_id, seconds)
        self._attempt_count = self.max_attempts
        self._enter_lockout(seconds * 1000)
        self._start_timer()

    # --- lockout timer ---------------------------------------------------------
    def _start_timer(self) -> None:
        with self._lock:
            if self._closed or not self._locked or self._timer is not None:
                return
            self._timer = self._timer_factory(self.config.tick_seconds, self.tick)
            timer = self._timer
        timer.start()

    def _take_timer(self) -> TimerHandle | None:
        timer, self._timer = self._timer, None
        return timer

    def tick(self) -> None:
        """Advance the lockout countdown by one second."""
        timer = None
        with self._lock:
            if self._closed or not self._locked:
                return
            self._lockout_remaining_ms -= 1000
            if self._lockout_remaining_ms > 0:
                return
            self._lockout_remaining_ms = 0
            self._locked = False
            self._attempt_count = 0
            self._last_error = ""
            self._state = SessionState.IDLE
            timer = self._take_timer()
            self._unlocked.notify_all()
        logger.info("Lockout expired for site %s", self.site_id)
        if self._store is not None:
            self._store.clear(self.site_id)
        if timer is not None:
            timer.cancel()

    def wait_until_unlocked(self, timeout: float | None = None) -> bool:
        """Block until the lockout expires or the session closes."""
        with self._unlocked:
            self._unlocked.wait_for(lambda: not self._locked or self._closed, timeout)
            return not self._locked

    # --- teardown --------------------------------------------------------------
    def cancel(self) -> bool:
        """Abandon the session; refused while locked out."""
        with self._lock:
            if self._closed:
                return False
            if self._locked:
                logger.info("Cancel refused for site %s during lockout", self.site_id)
                return False
            self._pin = ""
            self._last_error = ""
            self._attempt_count = 0
            self._state = SessionState.CANCELLED
            self._closed = True
            timer = self._take_timer()
            self._unlocked.notify_all()
        if timer is not None:
            timer.cancel()
        if self._on_cancel:
            self._on_cancel()
        return True

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            timer = self._take_timer()
            self._unlocked.notify_all()
        if timer is not None:
            timer.cancel()

    def __enter__(self) -> "PinAttemptSession":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
