"""Persistent tracking of active PIN lockouts per site."""
from __future__ import annotations

import json
import logging
import math
import threading
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, List, cast

from .config import DEFAULT_CONFIG, PinClockConfig


logger = logging.getLogger("pinclock.lockout_state")


@dataclass(slots=True)
class LockoutRecord:
    site_id: str
    lock_until: float
    updated_at: float

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


class LockoutStateStore:
    """Thread-safe helper to persist lockout deadlines to disk."""

    def __init__(self, config: PinClockConfig | None = None) -> None:
        self.config = config or DEFAULT_CONFIG
        self.config.ensure_directories()
        self.path: Path = self.config.lockout_state_location
        self._lock = threading.RLock()
        self._cache: Dict[str, LockoutRecord] = {}
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable lockout state %s: %s", self.path, exc)
            data = {}
        if not isinstance(data, dict):
            return
        data_dict = cast(Dict[str, Dict[str, object]], data)
        for raw_key, value in data_dict.items():
            try:
                self._cache[raw_key] = LockoutRecord(
                    site_id=str(value.get("site_id", raw_key)),
                    lock_until=float(cast(float, value.get("lock_until", 0.0))),
                    updated_at=float(cast(float, value.get("updated_at", 0.0))),
                )
            except (AttributeError, TypeError, ValueError):
                continue

    def reload(self) -> None:
        with self._lock:
            self._cache.clear()
            self._load()

    def _persist(self) -> None:
        with self._lock:
            serializable = {key: record.to_dict() for key, record in self._cache.items()}
            self.path.write_text(json.dumps(serializable, indent=2))

    def record_lockout(self, site_id: str, lock_until: float) -> None:
        with self._lock:
            self._cache[str(site_id)] = LockoutRecord(
                site_id=str(site_id),
                lock_until=lock_until,
                updated_at=time.time(),
            )
            self._persist()

    def clear(self, site_id: str) -> None:
        with self._lock:
            if self._cache.pop(str(site_id), None) is not None:
                self._persist()

    def reset_all(self) -> None:
        with self._lock:
            self._cache.clear()
            self._persist()

    def get(self, site_id: str) -> LockoutRecord | None:
        with self._lock:
            return self._cache.get(str(site_id))

    def remaining_seconds(self, site_id: str, now: float | None = None) -> int:
        """Whole seconds left on the site's lockout, 0 when none is active."""
        record = self.get(site_id)
        if record is None:
            return 0
        now = time.time() if now is None else now
        return max(0, math.ceil(record.lock_until - now))

    def list_records(self) -> List[LockoutRecord]:
        with self._lock:
            return list(self._cache.values())
