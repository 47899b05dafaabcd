from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from datetime import datetime, timedelta, timezone

import pytest

from config.settings import get_settings
from gateway.relay_hub import get_relay_hub
from sessions.registry import SessionRegistry, get_registry
from sessions.sweeper import get_sweeper
from transfer.blob_store import get_blob_store


class FakeClock:
    """Deterministic clock for expiry tests."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class FakeTransport:
    """Stands in for a WebSocket: records every frame sent to it."""

    def __init__(self, fail: bool = False):
        self.frames: list[str] = []
        self.fail = fail

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise RuntimeError("connection reset by peer")
        self.frames.append(data)


def _clear_singletons():
    for accessor in (get_settings, get_registry, get_relay_hub, get_blob_store, get_sweeper):
        accessor.cache_clear()


@pytest.fixture(autouse=True)
def fresh_state():
    """Every test starts with empty stores."""
    _clear_singletons()
    yield
    _clear_singletons()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return SessionRegistry(ttl_seconds=900, code_digits=4, clock=clock)
