"""Log setup: plaintext in dev, one JSON object per line in prod.

Every line is passed through redact() on the way out, uvicorn's access and
error lines included. Lines tied to a pairing session carry `session=<prefix>`.
"""
import json
import logging
import re
import sys
from typing import Optional

from config.settings import get_settings
from observability.redaction import redact

_SESSION_RE = re.compile(r"session=(\S+)")
_PLAIN_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S"


class PairLinkFormatter(logging.Formatter):

    def __init__(self, as_json: bool = False, redacting: bool = True, fmt: str = _PLAIN_FORMAT):
        super().__init__(fmt=fmt, datefmt=_DATEFMT)
        self.as_json = as_json
        self.redacting = redacting

    def format(self, record: logging.LogRecord) -> str:
        line = self._json_line(record) if self.as_json else super().format(record)
        return redact(line) if self.redacting else line

    def _json_line(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        entry = {"ts": self.formatTime(record, _DATEFMT), "level": record.levelname, "logger": record.name, "msg": msg}
        session = _SESSION_RE.search(msg)
        if session:
            entry["session_id"] = session.group(1)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: Optional[str] = None) -> None:
    settings = get_settings()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(PairLinkFormatter(
        as_json=settings.ENV == "prod",
        redacting=settings.LOG_REDACTION_ENABLED,
    ))

    root = logging.getLogger()
    root.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO))
    root.handlers = [handler]

    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uv = logging.getLogger(name)
        uv.handlers.clear()
        uv.propagate = True
    logging.getLogger("websockets").setLevel(logging.WARNING)
