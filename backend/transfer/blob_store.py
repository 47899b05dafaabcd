"""Fallback Blob Store: one size-capped payload per live session.

Used when the peers never get a direct channel up: one side uploads, the
other downloads by session identity. Reads are non-destructive; the blob
lives until its session is swept.
"""
import logging
import threading
from functools import lru_cache
from typing import Dict, Optional

from config.settings import get_settings
from core.exceptions import PayloadTooLargeError, SessionNotFoundError, UnauthorizedError
from schemas.transfer import DEFAULT_MIME, FallbackBlob
from sessions.registry import SessionRegistry, get_registry

logger = logging.getLogger(__name__)


class FallbackBlobStore:
    """Session-keyed blob map. Liveness is delegated to the registry."""

    def __init__(self, registry: SessionRegistry, max_bytes: int = 5 * 1024 * 1024):
        self.registry = registry
        self.max_bytes = max_bytes
        self._lock = threading.Lock()
        self._blobs: Dict[str, FallbackBlob] = {}

    def put(self, session_id: str, filename: str, mime: Optional[str], data: bytes) -> FallbackBlob:
        """Store (or replace) the blob for a live session."""
        if not self.registry.is_live(session_id):
            raise UnauthorizedError("Session expired")
        if len(data) > self.max_bytes:
            logger.warning(
                "Upload rejected: session=%s size=%d max=%d",
                session_id[:8], len(data), self.max_bytes,
            )
            raise PayloadTooLargeError(f"File exceeds {self.max_bytes // (1024 * 1024)} MB limit")

        blob = FallbackBlob(filename=filename, mime=mime or DEFAULT_MIME, data=data, size=len(data))
        with self._lock:
            replaced = session_id in self._blobs
            self._blobs[session_id] = blob

        logger.info(
            "Fallback blob stored: session=%s size=%d mime=%s replaced=%s",
            session_id[:8], blob.size, blob.mime, replaced,
        )
        return blob

    def get(self, session_id: str) -> FallbackBlob:
        if not self.registry.is_live(session_id):
            raise SessionNotFoundError("No file uploaded yet.")
        with self._lock:
            blob = self._blobs.get(session_id)
        if blob is None:
            raise SessionNotFoundError("No file uploaded yet.")
        return blob

    def discard(self, session_id: str) -> bool:
        with self._lock:
            return self._blobs.pop(session_id, None) is not None

    def count(self) -> int:
        with self._lock:
            return len(self._blobs)

    def total_bytes(self) -> int:
        with self._lock:
            return sum(b.size for b in self._blobs.values())


@lru_cache(maxsize=1)
def get_blob_store() -> FallbackBlobStore:
    return FallbackBlobStore(get_registry(), max_bytes=get_settings().FALLBACK_MAX_BYTES)
