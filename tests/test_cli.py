"""Tests for the pinclock command-line entry point."""
from __future__ import annotations

from pathlib import Path

import pytest

import pinclock_cli
from pinclock.config import PinClockConfig
from pinclock.lockout_state import LockoutStateStore


@pytest.fixture()
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("PINCLOCK_DATA_DIR", str(tmp_path))
    return tmp_path


def test_parser_defaults() -> None:
    args = pinclock_cli.build_parser().parse_args(["clock", "--site", "5"])
    assert args.action == "clock-in"
    assert args.latitude is None and args.no_location is False


def test_lockout_status_and_reset(data_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    store = LockoutStateStore(PinClockConfig(data_path=data_dir, log_path=data_dir))
    store.record_lockout("5", 4_102_444_800.0)

    assert pinclock_cli.main(["lockout-status"]) == 0
    assert "site=5" in capsys.readouterr().out

    assert pinclock_cli.main(["reset-lockout", "--site", "5"]) == 0
    assert pinclock_cli.main(["lockout-status"]) == 0
    assert "Lockout: inactive" in capsys.readouterr().out


def test_from_env_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PINCLOCK_API_URL", "http://clock.test/api/")
    monkeypatch.setenv("PINCLOCK_TIMEOUT", "2.5")
    config = PinClockConfig.from_env()
    assert config.api_base_url == "http://clock.test/api"
    assert config.request_timeout_seconds == 2.5


@pytest.mark.parametrize("coords", [["--lat", "45.5"], ["--lon", "-73.6"]])
def test_clock_requires_both_coordinates(
    coords: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as info:
        pinclock_cli.main(["clock", "--site", "5", *coords])
    assert info.value.code == 2
    assert "--lat and --lon must be given together" in capsys.readouterr().err
