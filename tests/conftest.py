"""Shared fixtures: a controllable clock, a recording scheduler and surfaces."""

import pytest

from config import Parameters
from surface import RecordingSurface


class FakeClock:
    """Clock returning whatever ``now`` is set to, in milliseconds."""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


class RecordingScheduler:
    def __init__(self):
        self.requests = []

    def request_frame(self, callback):
        self.requests.append(callback)

    def run_pending(self):
        pending, self.requests = self.requests, []
        for callback in pending:
            callback()


@pytest.fixture
def parameters():
    return Parameters()


@pytest.fixture
def surface():
    return RecordingSurface(800, 600)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    return RecordingScheduler()
