"""Shared fixtures: fake connections and timers for controller tests."""

from __future__ import annotations

import pytest

from poststudio.view import MemoryView


class FakeStream:
    """In-memory stand-in for an EventSource."""

    def __init__(self, url, listeners):
        self.url = url
        self.listeners = dict(listeners)
        self.closed = False

    def close(self):
        self.closed = True

    def emit(self, event, data=""):
        """Deliver an event the way a live connection would."""
        if not self.closed and event in self.listeners:
            self.listeners[event](data)

    def emit_late(self, event, data=""):
        """Deliver an event even after close (a straggler already in flight)."""
        self.listeners[event](data)


class FakeConnector:
    def __init__(self):
        self.streams: list[FakeStream] = []
        self.open_at_connect: list[int] = []

    def __call__(self, url, listeners):
        self.open_at_connect.append(sum(1 for s in self.streams if not s.closed))
        stream = FakeStream(url, listeners)
        self.streams.append(stream)
        return stream

    @property
    def last(self) -> FakeStream:
        return self.streams[-1]


class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    def __init__(self):
        self.timers: list[FakeTimer] = []

    def __call__(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    def fire_all(self):
        for timer in list(self.timers):
            if not timer.cancelled:
                timer.callback()


@pytest.fixture
def view() -> MemoryView:
    return MemoryView()


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()
