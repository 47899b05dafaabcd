"""Session Lifecycle Sweeper: periodic purge of expired sessions.

Runs as a background task inside the service process. Each tick snapshots
the expired ids, then removes code binding, relay membership and fallback
blob per session. Stores are locked one at a time and only briefly, so
request handling keeps going during a sweep.
"""
import asyncio
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from config.settings import get_settings
from gateway.relay_hub import RelayHub, get_relay_hub
from sessions.registry import SessionRegistry, get_registry
from transfer.blob_store import FallbackBlobStore, get_blob_store

logger = logging.getLogger(__name__)


class SessionSweeper:

    def __init__(
        self,
        registry: SessionRegistry,
        hub: RelayHub,
        blobs: FallbackBlobStore,
        interval_seconds: int = 60,
    ):
        self.registry = registry
        self.hub = hub
        self.blobs = blobs
        self.interval_seconds = interval_seconds
        self.last_run_at: Optional[datetime] = None
        self.last_swept = 0
        self.total_swept = 0
        self._task: Optional[asyncio.Task] = None

    def sweep_once(self) -> int:
        """Purge every session past expiry. Returns how many were removed."""
        swept = 0
        for session_id in self.registry.expired_session_ids():
            # Re-checked under the registry lock; a live id is left alone
            if not self.registry.discard(session_id, only_if_expired=True):
                continue
            peers = self.hub.purge(session_id)
            had_blob = self.blobs.discard(session_id)
            swept += 1
            logger.info("Session swept: session=%s peers=%d blob=%s", session_id[:8], peers, had_blob)

        self.last_run_at = datetime.now(timezone.utc)
        self.last_swept = swept
        self.total_swept += swept
        return swept

    async def _loop(self) -> None:
        logger.info("[SWEEPER] started: interval=%ds", self.interval_seconds)
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                swept = self.sweep_once()
                if swept:
                    logger.info("[SWEEPER] tick: swept=%d live=%d", swept, self.registry.count())
            except Exception as e:
                logger.error("[SWEEPER] tick failed: %s", e, exc_info=True)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("[SWEEPER] stopped")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def status(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "interval_seconds": self.interval_seconds,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_swept": self.last_swept,
            "total_swept": self.total_swept,
        }


@lru_cache(maxsize=1)
def get_sweeper() -> SessionSweeper:
    return SessionSweeper(
        get_registry(),
        get_relay_hub(),
        get_blob_store(),
        interval_seconds=get_settings().SWEEP_INTERVAL_S,
    )
