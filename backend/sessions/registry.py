"""Session Registry: pairing code minting, resolution and expiry.

Codes are short (CODE_DIGITS decimal digits) and therefore guessable; the
registry compensates with a short TTL and by never handing out a code that
is still bound, not by widening the code space.

The registry is the single source of truth for session liveness. The relay
hub and the fallback store gate access through is_live().
"""
import logging
import secrets
import threading
import uuid
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Tuple

from config.settings import get_settings
from core.exceptions import ResourceExhaustedError, SessionExpiredError, SessionNotFoundError
from schemas.session import PairingSession

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionRegistry:
    """In-memory code → session map with lazy expiry checks."""

    def __init__(
        self,
        ttl_seconds: int = 900,
        code_digits: int = 4,
        max_attempts: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.code_digits = code_digits
        self.code_space = 10 ** code_digits
        self.max_attempts = max_attempts or self.code_space * 10
        self._clock = clock or _utcnow
        self._lock = threading.Lock()
        self._by_code: Dict[str, PairingSession] = {}
        self._by_id: Dict[str, PairingSession] = {}

    def now(self) -> datetime:
        return self._clock()

    def _draw_code(self) -> str:
        return str(secrets.randbelow(self.code_space)).zfill(self.code_digits)

    def create_session(self) -> PairingSession:
        """Mint a fresh code + session. Raises ResourceExhaustedError."""
        with self._lock:
            if len(self._by_code) >= self.code_space:
                logger.error("Code space exhausted: live=%d space=%d", len(self._by_code), self.code_space)
                raise ResourceExhaustedError()

            for attempt in range(1, self.max_attempts + 1):
                code = self._draw_code()
                if code not in self._by_code:
                    break
            else:
                logger.error("No free code after %d attempts", self.max_attempts)
                raise ResourceExhaustedError()

            session_id = str(uuid.uuid4())
            while session_id in self._by_id:
                session_id = str(uuid.uuid4())

            now = self.now()
            session = PairingSession(
                session_id=session_id,
                code=code,
                created_at=now,
                expires_at=now + self.ttl,
            )
            self._by_code[code] = session
            self._by_id[session_id] = session

        logger.info(
            "Session created: session=%s code=%s attempts=%d ttl=%ds",
            session_id[:8], code, attempt, int(self.ttl.total_seconds()),
        )
        return session

    def resolve(self, code: str) -> Tuple[PairingSession, int]:
        """Return (session, remaining TTL seconds) for a bound, live code.

        No side effects: does not extend expiry or consume the code.
        """
        with self._lock:
            session = self._by_code.get(code)
        if session is None:
            raise SessionNotFoundError("Code not found or expired")

        now = self.now()
        if session.is_expired(now):
            raise SessionExpiredError("Code expired")
        return session, session.remaining_seconds(now)

    def get(self, session_id: str) -> Optional[PairingSession]:
        """Live session by identity, or None."""
        with self._lock:
            session = self._by_id.get(session_id)
        if session is None or session.is_expired(self.now()):
            return None
        return session

    def is_live(self, session_id: Optional[str]) -> bool:
        if not session_id:
            return False
        return self.get(session_id) is not None

    def expired_session_ids(self) -> List[str]:
        """Snapshot of sessions past expiry (for the sweeper)."""
        now = self.now()
        with self._lock:
            return [sid for sid, s in self._by_id.items() if s.is_expired(now)]

    def discard(self, session_id: str, only_if_expired: bool = True) -> bool:
        """Drop a session and free its code. Returns True if removed."""
        with self._lock:
            session = self._by_id.get(session_id)
            if session is None:
                return False
            if only_if_expired and not session.is_expired(self.now()):
                return False
            del self._by_id[session_id]
            if self._by_code.get(session.code) is session:
                del self._by_code[session.code]
        return True

    def count(self) -> int:
        with self._lock:
            return len(self._by_id)


@lru_cache(maxsize=1)
def get_registry() -> SessionRegistry:
    settings = get_settings()
    return SessionRegistry(
        ttl_seconds=settings.SESSION_TTL_S,
        code_digits=settings.CODE_DIGITS,
        max_attempts=settings.CODE_MAX_ATTEMPTS or None,
    )
