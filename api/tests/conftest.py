from __future__ import annotations

import os
from collections import deque
from collections.abc import Callable
from typing import Any

import pytest

# Settings are read when app.main is imported; keep tests free of exporter side effects.
os.environ.setdefault("JOBLY_OTEL_ENABLED", "false")


class RecordingDatabase:
    """Stands in for app.services.database.Database and replays scripted results."""

    def __init__(self, *results: Any) -> None:
        self.calls: list[tuple[str, str, tuple[Any, ...]]] = []
        self._results: deque[Any] = deque(results)

    async def fetch(self, query: str, *args: Any) -> list[dict[str, Any]]:
        self.calls.append(("fetch", query, args))
        return self._next_result(default=[])

    async def fetchrow(self, query: str, *args: Any) -> dict[str, Any] | None:
        self.calls.append(("fetchrow", query, args))
        return self._next_result(default=None)

    async def close(self) -> None:
        return None

    @property
    def queries(self) -> list[str]:
        return [" ".join(query.split()) for _, query, _ in self.calls]

    def _next_result(self, *, default: Any) -> Any:
        if not self._results:
            return default
        result = self._results.popleft()
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def recording_database() -> Callable[..., RecordingDatabase]:
    return RecordingDatabase
