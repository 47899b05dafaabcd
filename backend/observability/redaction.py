"""Secrets redaction engine for log output.

The session identity is the only credential a peer holds, so it must never
reach the logs verbatim. Uvicorn access lines carry it in the WS query string
and the download path.
"""
import re
from typing import List, Tuple

# (pattern, replacement)
_PATTERNS: List[Tuple[re.Pattern, str]] = [
    # Session identity in a query string: /api/ws?sessionId=...
    (re.compile(r"(sessionId=)[A-Za-z0-9\-_]+"), r"\1[REDACTED_SESSION]"),
    # Session identity in the download path
    (re.compile(r"(/download/)[A-Za-z0-9\-_]+"), r"\1[REDACTED_SESSION]"),
    # Session identity in JSON bodies
    (re.compile(r"(\"sessionId\"\s*:\s*\")[^\"]+"), r"\1[REDACTED_SESSION]"),
    # Email
    (re.compile(r"[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+"), "[REDACTED_EMAIL]"),
    # Generic bearer token
    (re.compile(r"Bearer\s+[A-Za-z0-9_\-\.]+", re.IGNORECASE), "[REDACTED_BEARER]"),
    # Long base64 runs (upload payloads, SDP blobs)
    (re.compile(r"[A-Za-z0-9+/]{200,}={0,2}"), "[REDACTED_BLOB]"),
]


def redact(text: str) -> str:
    """Apply all redaction patterns to text."""
    result = text
    for pattern, replacement in _PATTERNS:
        result = pattern.sub(replacement, result)
    return result
