"""Cancellable repeating timer driving the lockout countdown."""
from __future__ import annotations

import logging
import threading
from typing import Callable, Protocol


logger = logging.getLogger("pinclock.lockout_timer")


class TimerHandle(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


class RepeatingTimer:
    """Background thread calling ``callback`` every ``interval`` seconds until cancelled."""

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.interval = interval
        self.callback = callback
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop, name="PinClockLockoutTimer", daemon=True
        )
        self._thread.start()

    def cancel(self) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread and thread is not threading.current_thread():
            thread.join(timeout=2.0)

    def _run_loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.callback()
            except Exception as exc:
                logger.exception("Lockout tick failed: %s", exc)
