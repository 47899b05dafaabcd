"""Session Lifecycle Sweeper: expired sessions vanish from every store."""
import asyncio

import pytest

from conftest import FakeTransport
from core.exceptions import SessionNotFoundError, UnauthorizedError
from gateway.relay_hub import PeerConnection, RelayHub
from sessions.registry import SessionRegistry
from sessions.sweeper import SessionSweeper
from transfer.blob_store import FallbackBlobStore


@pytest.fixture
def hub(registry):
    return RelayHub(registry)


@pytest.fixture
def blobs(registry):
    return FallbackBlobStore(registry, max_bytes=1024)


@pytest.fixture
def sweeper(registry, hub, blobs):
    return SessionSweeper(registry, hub, blobs, interval_seconds=60)


def test_sweep_removes_code_membership_and_blob(sweeper, registry, hub, blobs, clock):
    session = registry.create_session()
    hub.admit(PeerConnection(FakeTransport()), session.session_id)
    blobs.put(session.session_id, "a.bin", None, b"abc")
    clock.advance(901)

    assert sweeper.sweep_once() == 1

    with pytest.raises(SessionNotFoundError):
        registry.resolve(session.code)
    with pytest.raises(UnauthorizedError):
        hub.admit(PeerConnection(FakeTransport()), session.session_id)
    with pytest.raises(SessionNotFoundError):
        blobs.get(session.session_id)
    assert registry.count() == 0
    assert hub.session_count() == 0
    assert blobs.count() == 0


def test_sweep_leaves_live_sessions(sweeper, registry, blobs, clock):
    old = registry.create_session()
    clock.advance(600)
    fresh = registry.create_session()
    blobs.put(fresh.session_id, "keep.bin", None, b"keep")
    clock.advance(301)

    assert sweeper.sweep_once() == 1

    assert registry.is_live(fresh.session_id)
    assert registry.resolve(fresh.code)[0].session_id == fresh.session_id
    assert blobs.get(fresh.session_id).data == b"keep"
    assert not registry.is_live(old.session_id)


def test_sweep_does_not_close_open_transports(sweeper, registry, hub, clock):
    session = registry.create_session()
    peer = PeerConnection(FakeTransport())
    hub.admit(peer, session.session_id)
    clock.advance(901)

    sweeper.sweep_once()

    assert peer.writable
    assert hub.remove(peer) is False


def test_sweep_records_status(sweeper, registry, clock):
    registry.create_session()
    registry.create_session()
    clock.advance(901)

    sweeper.sweep_once()
    sweeper.sweep_once()
    status = sweeper.status()

    assert status["last_swept"] == 0
    assert status["total_swept"] == 2
    assert status["last_run_at"] is not None
    assert status["running"] is False


class _MidSweepRegistry(SessionRegistry):
    """Runs `on_snapshot` right after the expired-id snapshot is taken."""

    on_snapshot = None

    def expired_session_ids(self):
        expired = super().expired_session_ids()
        if self.on_snapshot is not None:
            self.on_snapshot()
        return expired


def test_session_created_during_sweep_survives(clock):
    registry = _MidSweepRegistry(ttl_seconds=900, code_digits=4, clock=clock)
    hub = RelayHub(registry)
    blobs = FallbackBlobStore(registry, max_bytes=1024)
    sweeper = SessionSweeper(registry, hub, blobs, interval_seconds=60)
    stale = registry.create_session()
    clock.advance(901)
    created = []

    def create_mid_sweep():
        session = registry.create_session()
        hub.admit(PeerConnection(FakeTransport()), session.session_id)
        blobs.put(session.session_id, "late.bin", None, b"late")
        created.append(session)

    registry.on_snapshot = create_mid_sweep

    assert sweeper.sweep_once() == 1

    fresh = created[0]
    assert not registry.is_live(stale.session_id)
    assert registry.is_live(fresh.session_id)
    assert registry.resolve(fresh.code)[0].session_id == fresh.session_id
    assert hub.member_count(fresh.session_id) == 1
    assert blobs.get(fresh.session_id).data == b"late"


def test_expired_code_reusable_after_sweep(clock):
    small = SessionRegistry(ttl_seconds=60, code_digits=1, max_attempts=1000, clock=clock)
    sweeper = SessionSweeper(small, RelayHub(small), FallbackBlobStore(small), interval_seconds=60)
    for _ in range(10):
        small.create_session()
    clock.advance(61)

    assert sweeper.sweep_once() == 10
    assert small.create_session().code.isdigit()


@pytest.mark.asyncio
async def test_background_loop_survives_failing_tick(sweeper):
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")
        return 0

    sweeper.sweep_once = flaky
    sweeper.interval_seconds = 0
    sweeper.start()
    for _ in range(10):
        await asyncio.sleep(0)

    assert sweeper.running
    assert len(calls) >= 2
    await sweeper.stop()
    assert not sweeper.running
