"""Shared test helpers: recorded retry events and a virtual clock"""

from __future__ import annotations

from typing import Any, List, Tuple

import pytest


class RecordingSink:
    """Retry event sink that keeps every event in memory"""

    def __init__(self) -> None:
        self.events: List[Tuple[str, dict]] = []

    def warn(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.events]


class VirtualTime:
    """Monotonic clock advanced only by the fake sleep"""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def virtual_time() -> VirtualTime:
    return VirtualTime()
