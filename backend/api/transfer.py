"""Fallback transfer API: upload/download when the P2P channel never opens."""
import base64
import binascii
import logging
from urllib.parse import quote

from fastapi import APIRouter
from fastapi.responses import Response

from core.exceptions import InvalidRequestError, PayloadTooLargeError, UnauthorizedError
from schemas.transfer import UploadRequest, UploadResponse
from sessions.registry import get_registry
from transfer.blob_store import get_blob_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transfer"])


def _encoded_limit(max_bytes: int) -> int:
    """Longest base64 text that could still decode within max_bytes, with slack for line breaks."""
    return ((max_bytes + 2) // 3) * 4 * 2


@router.post("/upload", response_model=UploadResponse)
async def upload_fallback(req: UploadRequest):
    if not req.session_id or not req.filename or not req.payload:
        raise InvalidRequestError("Missing fields")
    if not get_registry().is_live(req.session_id):
        raise UnauthorizedError("Session expired")

    blobs = get_blob_store()
    if len(req.payload) > _encoded_limit(blobs.max_bytes):
        raise PayloadTooLargeError(f"File exceeds {blobs.max_bytes // (1024 * 1024)} MB limit")

    try:
        data = base64.b64decode("".join(req.payload.split()), validate=True)
    except (binascii.Error, ValueError):
        raise InvalidRequestError("Payload is not valid base64")

    blob = blobs.put(req.session_id, req.filename, req.mime, data)
    return UploadResponse(size=blob.size)


@router.get("/download/{session_id}")
async def download_fallback(session_id: str):
    blob = get_blob_store().get(session_id)
    return Response(
        content=blob.data,
        media_type=blob.mime,
        headers={"Content-Disposition": f'attachment; filename="{quote(blob.filename)}"'},
    )
