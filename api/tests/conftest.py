from __future__ import annotations

from collections import deque
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
import os
from typing import Any

import pytest

# Spans are not exported from unit tests.
os.environ.setdefault("JOBLY_OTEL_ENABLED", "false")


class FakeDatabase:
    """Records every statement and answers with scripted results in call order.

    A scripted `Exception` instance is raised instead of returned.
    """

    def __init__(self, responses: Iterable[Any] = ()) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.transactions = 0
        self._responses: deque[Any] = deque(responses)

    async def fetch(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        self.calls.append((sql, args))
        return self._next(default=[])

    async def fetchrow(self, sql: str, *args: Any) -> dict[str, Any] | None:
        self.calls.append((sql, args))
        return self._next(default=None)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[FakeDatabase]:
        self.transactions += 1
        yield self

    def _next(self, *, default: Any) -> Any:
        if not self._responses:
            return default
        response = self._responses.popleft()
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_db_factory():
    def _build(*responses: Any) -> FakeDatabase:
        return FakeDatabase(responses)

    return _build
