import pytest

from orchestrator import SessionOrchestrator


class Channel:
    """Stands in for a client socket; records every outbound event."""

    def __init__(self, handle):
        self.handle = handle
        self.events = []

    async def __call__(self, event, data=None):
        self.events.append((event, data))

    def names(self):
        return [event for event, _ in self.events]

    def last(self):
        return self.events[-1]

    def clear(self):
        self.events.clear()


@pytest.fixture
def orchestrator():
    return SessionOrchestrator()


@pytest.fixture
def connect(orchestrator):
    def _connect(handle):
        channel = Channel(handle)
        orchestrator.connect(handle, channel)
        return channel
    return _connect
