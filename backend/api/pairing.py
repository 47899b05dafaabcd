"""Pairing API: mint a short code for a new session, resolve a code to it.

The joinUrl returned on create embeds the code as `?code=`; clients render
it as a QR image themselves.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from config.settings import get_settings
from core.exceptions import InvalidRequestError, SessionNotFoundError
from sessions.registry import get_registry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pairing"])


# ---- Schemas ----

class SessionActionRequest(BaseModel):
    action: Optional[str] = None


class SessionCreateResponse(BaseModel):
    ok: bool = True
    code: str
    sessionId: str
    joinUrl: str
    expiresInSec: int


class ResolveRequest(BaseModel):
    model_config = {"coerce_numbers_to_str": True}

    code: Optional[str] = None


class ResolveResponse(BaseModel):
    ok: bool = True
    sessionId: str
    expiresInSec: int


# ---- Helpers ----

def _public_origin(request: Request) -> str:
    """Origin the joining browser should use, honoring reverse proxies."""
    configured = get_settings().PUBLIC_BASE_URL
    if configured:
        return configured.rstrip("/")
    proto = request.headers.get("x-forwarded-proto")
    if proto:
        host = request.headers.get("x-forwarded-host") or request.headers.get("host", "")
        return f"{proto}://{host}"
    return str(request.base_url).rstrip("/")


# ---- Routes ----

@router.post("/session", response_model=SessionCreateResponse)
async def create_session(req: SessionActionRequest, request: Request):
    if req.action != "create":
        raise InvalidRequestError("Invalid action")

    registry = get_registry()
    session = registry.create_session()
    return SessionCreateResponse(
        code=session.code,
        sessionId=session.session_id,
        joinUrl=f"{_public_origin(request)}/?code={session.code}",
        expiresInSec=int(registry.ttl.total_seconds()),
    )


@router.post("/resolve", response_model=ResolveResponse)
async def resolve_code(req: ResolveRequest):
    if not req.code:
        raise SessionNotFoundError("Code not found or expired")

    session, remaining = get_registry().resolve(req.code.strip())
    logger.info("Code resolved: session=%s remaining=%ds", session.session_id[:8], remaining)
    return ResolveResponse(sessionId=session.session_id, expiresInSec=remaining)
