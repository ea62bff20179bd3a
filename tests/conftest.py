"""Shared fixtures: an in-memory durable store and a controllable clock."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import patch

import pytest

from agentbox.core.store.backend import InMemoryStore


class FakeClock:
    """Stands in for ``agentbox.utils.clock.now_ms``; time moves only on :meth:`advance`."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def fake_clock() -> Iterator[FakeClock]:
    clock = FakeClock()
    with patch("agentbox.utils.clock.now_ms", clock):
        yield clock


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()
