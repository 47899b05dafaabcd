"""Session schemas: pairing code ↔ session identity binding."""
import math
from datetime import datetime

from pydantic import BaseModel


class PairingSession(BaseModel):
    """A short-lived pairing session bound to a human-typeable code."""
    model_config = {"frozen": True}

    session_id: str
    code: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def remaining_seconds(self, now: datetime) -> int:
        """Whole seconds left before expiry, never negative."""
        remaining = (self.expires_at - now).total_seconds()
        return max(0, math.floor(remaining))
