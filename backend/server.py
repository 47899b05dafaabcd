"""PairLink Backend: signaling and session-coordination entry point.

Pairs two browsers through a short code, relays their WebRTC handshake over
a WebSocket and offers a size-capped fallback upload when P2P fails.
All state is in process memory and is lost on restart.
"""
from contextlib import asynccontextmanager
from pathlib import Path
import logging

from dotenv import load_dotenv
from fastapi import FastAPI, APIRouter, Request, WebSocket
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

# Load env before anything else
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / ".env")

from config.settings import get_settings
from config.validators import validate_startup_config
from core.logging_config import setup_logging
from core.exceptions import PairLinkError
from api.pairing import router as pairing_router
from api.transfer import router as transfer_router
from gateway.relay_hub import get_relay_hub
from gateway.ws_server import handle_ws_connection
from observability.metrics import get_system_metrics
from sessions.registry import get_registry
from sessions.sweeper import get_sweeper
from transfer.blob_store import get_blob_store

VERSION = "0.1.0"

# ---- Setup logging ----
setup_logging()
logger = logging.getLogger(__name__)


# ---- Lifespan ----
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    validate_startup_config(settings)
    logger.info(
        "PairLink starting: env=%s ttl=%ds digits=%d fallback_max=%d",
        settings.ENV, settings.SESSION_TTL_S, settings.CODE_DIGITS, settings.FALLBACK_MAX_BYTES,
    )
    sweeper = get_sweeper()
    sweeper.start()
    logger.info("PairLink ready")
    yield
    await sweeper.stop()
    logger.info("PairLink shutdown complete")


# ---- App ----
app = FastAPI(
    title="PairLink Signaling",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---- Error mapping ----
@app.exception_handler(PairLinkError)
async def pairlink_error_handler(request: Request, exc: PairLinkError):
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"ok": False, "error": "Invalid request"})


api_router = APIRouter(prefix="/api")


# =====================================================
#  REST Endpoints
# =====================================================

# ---- Health ----
@api_router.get("/health")
async def health():
    settings = get_settings()
    hub = get_relay_hub()
    return {
        "status": "ok",
        "env": settings.ENV,
        "version": VERSION,
        "sessions": get_registry().count(),
        "relay_sessions": hub.session_count(),
        "relay_connections": hub.connection_count(),
        "fallback_blobs": get_blob_store().count(),
    }


@api_router.get("/metrics")
async def metrics():
    return get_system_metrics()


api_router.include_router(pairing_router)
api_router.include_router(transfer_router)
app.include_router(api_router)


# =====================================================
#  WebSocket Endpoint
# =====================================================

@app.websocket("/api/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Signaling relay scoped to ?sessionId=."""
    await handle_ws_connection(websocket)


@app.websocket("/ws")
async def websocket_endpoint_legacy(websocket: WebSocket):
    """Same relay on the bare path older clients dial."""
    await handle_ws_connection(websocket)


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(app, host=_settings.HOST, port=_settings.PORT, log_config=None)
