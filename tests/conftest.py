"""Pytest configuration and fixtures."""

import asyncio
from typing import Callable, Dict, List, Optional, Union

import pytest

from countrydex.fetcher import FetchError
from countrydex.models import Record


class FakeTimer:
    def __init__(self, deadline: float, callback: Callable[[], None]):
        self.deadline = deadline
        self.callback = callback
        self.stopped = False
        self.fired = False

    def stop(self) -> None:
        self.stopped = True


class FakeClock:
    """Stands in for Textual's set_timer with a manually advanced clock."""

    def __init__(self):
        self.now = 0.0
        self.timers: List[FakeTimer] = []

    def set_timer(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def live(self) -> List[FakeTimer]:
        return [t for t in self.timers if not t.stopped and not t.fired]

    def advance(self, seconds: float) -> None:
        self.now += seconds
        for timer in sorted(self.live, key=lambda t: t.deadline):
            if timer.deadline <= self.now + 1e-9 and not timer.stopped:
                timer.fired = True
                timer.callback()


class FakeFetcher:
    """Async fetcher returning canned results, optionally held until released."""

    def __init__(self, results: Optional[Dict[str, Union[List[Record], FetchError]]] = None):
        self.results = results or {}
        self.calls: List[str] = []
        self.gates: Dict[str, asyncio.Event] = {}
        self.closed = False

    def hold(self, query: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[query] = gate
        return gate

    async def fetch(self, query: str) -> List[Record]:
        self.calls.append(query)
        gate = self.gates.get(query)
        if gate is not None:
            await gate.wait()
        result = self.results.get(query, [])
        if isinstance(result, FetchError):
            raise result
        return list(result)

    async def aclose(self) -> None:
        self.closed = True


def make_records(*names: str) -> List[Record]:
    return [
        Record(name=name, flag_ref=f"https://flags.example/{i}.svg", rank=i)
        for i, name in enumerate(names, start=1)
    ]


def numbered_records(count: int) -> List[Record]:
    return make_records(*(f"Country {i:03d}" for i in range(1, count + 1)))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()
