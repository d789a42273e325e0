"""Tests for the line-based PinPrompt."""
from __future__ import annotations

from pathlib import Path
from typing import Iterator, List

import pytest

from pinclock.config import PinClockConfig
from pinclock.lockout_state import LockoutStateStore
from pinclock.pin_prompt import PinPrompt
from pinclock.session import ClockAction, PinLockedError


def scripted(lines: List[str]):
    feed: Iterator[str] = iter(lines)

    def provider(_: str) -> str:
        try:
            return next(feed)
        except StopIteration:
            raise EOFError from None

    return provider


def build_prompt(tmp_path: Path, verifier, lines: List[str], output: List[str], **config_kwargs) -> PinPrompt:
    config = PinClockConfig(data_path=tmp_path, log_path=tmp_path, **config_kwargs)
    return PinPrompt(
        verifier,
        config=config,
        lockout_store=LockoutStateStore(config),
        input_provider=scripted(lines),
        output=output.append,
    )


def test_success_after_one_failure(tmp_path: Path) -> None:
    output: List[str] = []
    prompt = build_prompt(
        tmp_path, lambda pin, *_: pin == "2468", ["1111", "12", "2468"], output
    )
    result = prompt.run(ClockAction.CLOCK_OUT, "4", employee_name="Ana")
    assert result.succeeded
    assert output[0] == "Clock Out - site 4"
    assert "Employee: Ana" in output
    assert "Invalid PIN. 2 attempts remaining." in output
    assert "PIN must be exactly 4 digits" in output


def test_blank_line_cancels(tmp_path: Path) -> None:
    output: List[str] = []
    prompt = build_prompt(tmp_path, lambda *_: True, ["abc", ""], output)
    result = prompt.run("clock-in", "4")
    assert result.cancelled and not result.succeeded
    assert "Enter up to 4 digits." in output


def test_lockout_without_waiting_raises(tmp_path: Path) -> None:
    output: List[str] = []
    prompt = build_prompt(tmp_path, lambda *_: False, ["0000"] * 3, output)
    with pytest.raises(PinLockedError):
        prompt.run("clock-in", "4", wait_on_lockout=False)
    assert prompt.lockout_store is not None
    assert prompt.lockout_store.remaining_seconds("4") > 0


def test_lockout_waits_then_allows_retry(tmp_path: Path) -> None:
    output: List[str] = []
    attempts: List[str] = []

    def verifier(pin: str, *_: object) -> bool:
        attempts.append(pin)
        return len(attempts) > 2

    prompt = build_prompt(
        tmp_path,
        verifier,
        ["0000", "0000", "1234"],
        output,
        max_attempts=2,
        lockout_seconds=1,
        tick_seconds=0.01,
    )
    result = prompt.run("clock-in", "4")
    assert result.succeeded
    assert "Account locked for 0:01" in output
    assert "Lockout expired. You may try again." in output
