"""Observability Metrics: in-process counters for the signaling core."""
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from gateway.relay_hub import get_relay_hub
from sessions.registry import get_registry
from sessions.sweeper import get_sweeper
from transfer.blob_store import get_blob_store

logger = logging.getLogger(__name__)


def get_system_metrics() -> Dict[str, Any]:
    """Collect system-wide metrics."""
    registry = get_registry()
    hub = get_relay_hub()
    blobs = get_blob_store()

    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "sessions": {
            "tracked": registry.count(),
            "expired_pending_sweep": len(registry.expired_session_ids()),
            "code_space": registry.code_space,
        },
        "relay": {
            "sessions": hub.session_count(),
            "connections": hub.connection_count(),
        },
        "fallback": {
            "blobs": blobs.count(),
            "bytes": blobs.total_bytes(),
            "max_bytes": blobs.max_bytes,
        },
        "sweeper": get_sweeper().status(),
    }
