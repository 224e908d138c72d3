"""Shared fixtures: a synthetic clock and a manually-fired frame scheduler."""

import pytest

from session import AnimationLoop, SimulationSession


class FakeClock:
    """Clock whose time (ms) only moves when advanced."""

    def __init__(self, start=0.0):
        self.t = start

    def now(self):
        return self.t

    def advance(self, ms):
        self.t += ms


class ManualScheduler:
    """FrameScheduler that runs its callback only when fire() is called."""

    def __init__(self):
        self.callback = None
        self.start_count = 0

    @property
    def active(self):
        return self.callback is not None

    def start(self, callback):
        self.callback = callback
        self.start_count += 1

    def stop(self):
        self.callback = None

    def fire(self):
        if self.callback is not None:
            self.callback()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def session():
    return SimulationSession()


@pytest.fixture
def loop(session, scheduler, clock):
    return AnimationLoop(session, scheduler, clock)
