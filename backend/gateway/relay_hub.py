"""Relay Hub: session-scoped fan-out of signaling frames.

Each WebSocket is wrapped in a PeerConnection actor: a bounded outbox drained
by its own writer task. Relaying only enqueues, so one slow or dead peer never
holds up delivery to the others, and per-pair ordering follows outbox FIFO.

Connection lifecycle: PENDING → ADMITTED → RELAYING → CLOSED.

Sessions are not capped at two members. Pairing is trusted to the secrecy of
the code; a third admitted connection receives relayed traffic too.
"""
import asyncio
import logging
import threading
import uuid
from enum import Enum
from functools import lru_cache
from typing import Dict, Optional, Set

from core.exceptions import InvalidRequestError, UnauthorizedError
from sessions.registry import SessionRegistry, get_registry

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    PENDING = "pending"      # not yet admitted to a session
    ADMITTED = "admitted"    # member, outbox buffering, writer not started
    RELAYING = "relaying"    # writer task draining the outbox
    CLOSED = "closed"        # removed; nothing more is queued or sent


class PeerConnection:
    """One live transport plus its outbound queue.

    `transport` is anything with an async `send_text(str)` (a FastAPI
    WebSocket in production).
    """

    def __init__(self, transport, outbox_size: int = 64, conn_id: Optional[str] = None):
        self.conn_id = conn_id or uuid.uuid4().hex[:12]
        self.transport = transport
        self.session_id: Optional[str] = None
        self.state = ConnectionState.PENDING
        self.sent = 0
        self.dropped = 0
        self._outbox: asyncio.Queue = asyncio.Queue(maxsize=outbox_size)
        self._writer: Optional[asyncio.Task] = None

    @property
    def writable(self) -> bool:
        return self.state in (ConnectionState.ADMITTED, ConnectionState.RELAYING)

    def offer(self, message: str) -> bool:
        """Queue a frame without waiting. False means it was dropped."""
        if not self.writable:
            self.dropped += 1
            return False
        try:
            self._outbox.put_nowait(message)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.debug("Outbox full, frame dropped: conn=%s", self.conn_id)
            return False
        return True

    def start(self) -> None:
        """Begin draining the outbox onto the transport."""
        if self.state != ConnectionState.ADMITTED:
            return
        self.state = ConnectionState.RELAYING
        self._writer = asyncio.create_task(self._drain())

    async def _drain(self) -> None:
        while self.state == ConnectionState.RELAYING:
            message = await self._outbox.get()
            if self.state != ConnectionState.RELAYING:
                break
            try:
                await self.transport.send_text(message)
                self.sent += 1
            except Exception as e:
                logger.debug("Send failed, connection closed: conn=%s error=%s", self.conn_id, e)
                self.state = ConnectionState.CLOSED
                break

    def close(self) -> None:
        """Mark closed and discard anything still queued."""
        self.state = ConnectionState.CLOSED
        while not self._outbox.empty():
            self._outbox.get_nowait()
        if self._writer is not None and not self._writer.done():
            self._writer.cancel()

    async def stop(self) -> None:
        """Close and wait for the writer task to finish."""
        self.close()
        if self._writer is None:
            return
        try:
            await self._writer
        except asyncio.CancelledError:
            pass
        self._writer = None


class RelayHub:
    """Membership map session_id → set of PeerConnection."""

    def __init__(self, registry: SessionRegistry):
        self.registry = registry
        self._lock = threading.Lock()
        self._members: Dict[str, Set[PeerConnection]] = {}

    def admit(self, connection: PeerConnection, session_id: Optional[str]) -> int:
        """Register a connection into a live session. Returns the member count."""
        if not self.registry.is_live(session_id):
            raise UnauthorizedError("Session not found or expired")

        with self._lock:
            if connection.state != ConnectionState.PENDING:
                raise InvalidRequestError("Connection already admitted")
            connection.session_id = session_id
            connection.state = ConnectionState.ADMITTED
            members = self._members.setdefault(session_id, set())
            members.add(connection)
            size = len(members)

        logger.info("Peer admitted: session=%s conn=%s members=%d", session_id[:8], connection.conn_id, size)
        if size > 2:
            logger.info("Session has more than two peers: session=%s members=%d", session_id[:8], size)
        return size

    def relay(self, sender: PeerConnection, message: str) -> int:
        """Queue `message` verbatim for every other member of the sender's session.

        Returns the number of peers it was queued for.
        """
        with self._lock:
            members = self._members.get(sender.session_id)
            if not members or sender not in members:
                return 0
            delivered = 0
            for peer in members:
                if peer is sender:
                    continue
                if peer.offer(message):
                    delivered += 1
        return delivered

    def remove(self, connection: PeerConnection) -> bool:
        """Unregister on transport close. Returns True if it was a member."""
        session_id = connection.session_id
        with self._lock:
            connection.close()
            members = self._members.get(session_id)
            if not members or connection not in members:
                return False
            members.discard(connection)
            remaining = len(members)
            if not remaining:
                del self._members[session_id]

        logger.info("Peer removed: session=%s conn=%s remaining=%d", session_id[:8], connection.conn_id, remaining)
        return True

    def purge(self, session_id: str) -> int:
        """Drop a session's membership. Transports are left open."""
        with self._lock:
            members = self._members.pop(session_id, None)
        return len(members) if members else 0

    def member_count(self, session_id: str) -> int:
        with self._lock:
            return len(self._members.get(session_id, ()))

    def session_count(self) -> int:
        with self._lock:
            return len(self._members)

    def connection_count(self) -> int:
        with self._lock:
            return sum(len(m) for m in self._members.values())


@lru_cache(maxsize=1)
def get_relay_hub() -> RelayHub:
    return RelayHub(get_registry())
