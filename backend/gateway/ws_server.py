"""WebSocket server: signaling relay gateway.

Protocol:
  1. Client connects to /api/ws?sessionId=<id>
  2. Session not live → closed before accept (code 4403)
  3. Text frames whose JSON `type` is ready/offer/answer/candidate are
     relayed verbatim to the other members of the session
  4. Anything else is ignored; there is no error channel back to the client

A session expiring mid-connection does not close the socket. The sweeper
drops the membership entry and the transport goes away on its own.
"""
import logging

from fastapi import WebSocket, WebSocketDisconnect

from config.settings import get_settings
from core.exceptions import PairLinkError
from gateway.relay_hub import PeerConnection, get_relay_hub
from schemas.ws_messages import relay_type_of

logger = logging.getLogger(__name__)

WS_CLOSE_SESSION_NOT_LIVE = 4403


async def handle_ws_connection(websocket: WebSocket) -> None:
    """Admit, then pump frames from this peer to the rest of its session."""
    hub = get_relay_hub()
    session_id = websocket.query_params.get("sessionId")
    peer = PeerConnection(websocket, outbox_size=get_settings().RELAY_OUTBOX_SIZE)

    try:
        hub.admit(peer, session_id)
    except PairLinkError as e:
        logger.warning("WS rejected: conn=%s reason=%s", peer.conn_id, e.code)
        await websocket.close(code=WS_CLOSE_SESSION_NOT_LIVE, reason="Session not live")
        return

    try:
        await websocket.accept()
        peer.start()

        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            raw = message.get("text")
            if raw is None:
                continue  # binary frames carry nothing relayable

            msg_type = relay_type_of(raw)
            if msg_type is None:
                logger.debug("Ignored frame: session=%s conn=%s", session_id[:8], peer.conn_id)
                continue

            delivered = hub.relay(peer, raw)
            logger.debug(
                "Relayed %s: session=%s conn=%s peers=%d",
                msg_type.value, session_id[:8], peer.conn_id, delivered,
            )

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error("WS error: session=%s conn=%s error=%s", session_id[:8], peer.conn_id, str(e), exc_info=True)
    finally:
        hub.remove(peer)
        await peer.stop()
        logger.info(
            "WS disconnected: session=%s conn=%s sent=%d dropped=%d",
            session_id[:8], peer.conn_id, peer.sent, peer.dropped,
        )
