"""WebSocket message schemas: signaling envelope between paired browsers.

Only the `type` tag is inspected, to decide whether a frame is relayed.
Everything else (SDP, ICE candidates) is opaque and forwarded verbatim.
"""
import json
from enum import Enum
from typing import Optional


class WSMessageType(str, Enum):
    READY = "ready"
    OFFER = "offer"
    ANSWER = "answer"
    CANDIDATE = "candidate"


RELAYABLE_TYPES = frozenset(t.value for t in WSMessageType)


def relay_type_of(raw: str) -> Optional[WSMessageType]:
    """Return the signaling type of a text frame, or None if it must be ignored.

    Non-JSON, non-object frames and unknown `type` values are not errors;
    they are simply not relayed.
    """
    try:
        msg = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(msg, dict):
        return None
    msg_type = msg.get("type")
    if not isinstance(msg_type, str) or msg_type not in RELAYABLE_TYPES:
        return None
    return WSMessageType(msg_type)
