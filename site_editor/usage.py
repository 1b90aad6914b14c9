"""Hourly edit counters keyed by (user id, hour bucket)."""

import json
import math
import os
import tempfile
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Protocol

from . import config
from .utils import dbg


class UsageStore(Protocol):
    def get(self, user_id: str, bucket: str) -> int:
        ...

    def increment(self, user_id: str, bucket: str) -> int:
        ...


def _utcnow(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def hour_bucket(now: Optional[datetime] = None) -> str:
    """Start of the current UTC hour, e.g. 2024-05-01T13:00:00+00:00."""
    start = _utcnow(now).replace(minute=0, second=0, microsecond=0)
    return start.isoformat()


def minutes_until_next_hour(now: Optional[datetime] = None) -> int:
    current = _utcnow(now)
    next_hour = current.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
    return max(1, math.ceil((next_hour - current).total_seconds() / 60))


class InMemoryUsageStore:
    def __init__(self):
        self._counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(user_id: str, bucket: str) -> str:
        return f"{user_id}|{bucket}"

    def get(self, user_id: str, bucket: str) -> int:
        with self._lock:
            return self._counts.get(self._key(user_id, bucket), 0)

    def increment(self, user_id: str, bucket: str) -> int:
        with self._lock:
            key = self._key(user_id, bucket)
            self._counts[key] = self._counts.get(key, 0) + 1
            return self._counts[key]


class JsonUsageStore:
    """Counters persisted to a JSON file: {"<user>": {"<bucket>": count}}.

    Read-then-write per increment; concurrent increments from separate processes
    can race. Buckets older than the current one are dropped on write.
    """

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Dict[str, int]]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle) or {}
        except (OSError, ValueError) as exc:
            dbg(f"usage: unreadable store {self.path}: {exc}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Dict[str, int]]) -> None:
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".site_editor_usage.", dir=directory, text=True)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=True, indent=2)
            os.replace(tmp_path, self.path)
        finally:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def get(self, user_id: str, bucket: str) -> int:
        with self._lock:
            return int((self._load().get(user_id) or {}).get(bucket, 0))

    def increment(self, user_id: str, bucket: str) -> int:
        with self._lock:
            data = self._load()
            user_counts = data.get(user_id) or {}
            count = int(user_counts.get(bucket, 0)) + 1
            data[user_id] = {bucket: count}
            self._save(data)
            return count


def make_store(target: Optional[str] = None) -> UsageStore:
    """Return the store named by `target`: "memory" (default) or a JSON file path."""
    target = (target if target is not None else config.USAGE_STORE).strip()
    if not target or target == "memory":
        return InMemoryUsageStore()
    return JsonUsageStore(target)
