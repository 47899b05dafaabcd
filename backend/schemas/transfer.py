"""Fallback transfer schemas: store-and-forward payload + upload contract."""
import re
from datetime import datetime, timezone
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

DEFAULT_MIME = "application/octet-stream"

# Echoed back as Content-Type: printable ASCII only, no CR/LF
_MIME_RE = re.compile(r"^[\x21-\x7e][\x20-\x7e]*$")


class FallbackBlob(BaseModel):
    """One uploaded file held for a session. Replaced wholesale, never mutated."""
    model_config = {"frozen": True}

    filename: str
    mime: str = DEFAULT_MIME
    data: bytes
    size: int
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("mime", mode="before")
    @classmethod
    def _header_safe_mime(cls, value):
        if isinstance(value, str):
            value = value.strip()
            if _MIME_RE.match(value):
                return value
        return DEFAULT_MIME


class UploadRequest(BaseModel):
    """Body of POST /api/upload. The payload is base64 text."""
    model_config = {"populate_by_name": True}

    session_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("sessionId", "session_id"))
    filename: Optional[str] = None
    mime: Optional[str] = None
    payload: Optional[str] = Field(default=None, validation_alias=AliasChoices("payload", "dataB64"))


class UploadResponse(BaseModel):
    ok: bool = True
    size: int
