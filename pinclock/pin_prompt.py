"""Keyboard-driven PIN prompt for clocking in and out from a terminal."""
from __future__ import annotations

import getpass
import logging
from dataclasses import dataclass
from typing import Any, Callable

from .config import DEFAULT_CONFIG, PinClockConfig
from .lockout_state import LockoutStateStore
from .lockout_timer import TimerFactory
from .session import ClockAction, PinAttemptSession, PinLockedError, Verifier


LOGGER = logging.getLogger("pinclock.pin_prompt")

CANCEL_INPUTS = {"", "q", "quit", "exit"}


@dataclass(slots=True)
class PinPromptResult:
    result: Any
    cancelled: bool

    @property
    def succeeded(self) -> bool:
        return not self.cancelled and bool(self.result)


class PinPrompt:
    """Runs one PIN session to completion against line-based input.

    Each line is typed into the session as the whole PIN buffer; four digits
    submit on their own, shorter entries are submitted explicitly so the
    length error is reported. An empty line or ``q`` cancels, which the
    session refuses while locked out.
    """

    def __init__(
        self,
        verifier: Verifier,
        *,
        config: PinClockConfig | None = None,
        lockout_store: LockoutStateStore | None = None,
        input_provider: Callable[[str], str] | None = None,
        output: Callable[[str], None] = print,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self.verifier = verifier
        self.config = config or DEFAULT_CONFIG
        self.lockout_store = lockout_store
        self.input_provider = input_provider or getpass.getpass
        self.output = output
        self.timer_factory = timer_factory

    def run(
        self,
        action: ClockAction | str,
        site_id: str,
        *,
        employee_name: str | None = None,
        wait_on_lockout: bool = True,
    ) -> PinPromptResult:
        action = ClockAction(action)
        session = PinAttemptSession(
            self.verifier,
            action=action,
            site_id=site_id,
            config=self.config,
            lockout_store=self.lockout_store,
            timer_factory=self.timer_factory,
        )
        with session:
            self.output(f"{action.label} - site {site_id}")
            if employee_name:
                self.output(f"Employee: {employee_name}")
            return self._loop(session, wait_on_lockout=wait_on_lockout)

    def _loop(self, session: PinAttemptSession, *, wait_on_lockout: bool) -> PinPromptResult:
        prompt = f"Enter your {self.config.pin_length}-digit PIN: "
        while True:
            if session.is_locked:
                if not wait_on_lockout:
                    raise PinLockedError(session.last_error)
                self.output(f"Account locked for {session.lockout_display()}")
                session.wait_until_unlocked()
                self.output("Lockout expired. You may try again.")
                continue

            try:
                value = self.input_provider(prompt).strip()
            except EOFError:
                value = ""

            if value.lower() in CANCEL_INPUTS:
                if session.cancel():
                    LOGGER.info("PIN prompt cancelled for site %s", session.site_id)
                    return PinPromptResult(result=None, cancelled=True)
                self.output("Cannot cancel while locked out.")
                continue

            if not session.on_digit_input(value):
                self.output(f"Enter up to {self.config.pin_length} digits.")
                continue
            if len(value) < self.config.pin_length:
                session.submit()

            if session.result is not None:
                return PinPromptResult(result=session.result, cancelled=False)
            if session.last_error:
                self.output(session.last_error)
            attempts = session.attempts_display()
            if attempts:
                self.output(attempts)
