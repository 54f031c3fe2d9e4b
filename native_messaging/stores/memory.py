from __future__ import annotations

import threading


class InMemoryRegistrationStore:
    """Process-local discovery store for tests and dry runs."""

    def __init__(self, records: dict[str, str] | None = None) -> None:
        self._records: dict[str, str] = dict(records or {})
        self._lock = threading.Lock()

    def get(self, hostname: str) -> str | None:
        with self._lock:
            return self._records.get(hostname)

    def set(self, hostname: str, manifest_path: str) -> None:
        with self._lock:
            self._records[hostname] = str(manifest_path)

    def delete(self, hostname: str) -> None:
        with self._lock:
            self._records.pop(hostname, None)

    def snapshot(self) -> dict[str, str]:
        with self._lock:
            return dict(self._records)
