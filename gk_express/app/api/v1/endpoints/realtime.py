"""
Real-time WebSocket endpoint.

Clients connect with ``/v1/ws?token=<bearer>`` and exchange JSON frames of
the form ``{"event": name, "data": {...}}``.
"""

import json
import logging
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession

from gk_express.app.core.dependencies import resolve_identity, verify_token
from gk_express.app.core.exceptions import AuthenticationError, ForbiddenError
from gk_express.app.db.session import get_db
from gk_express.app.realtime.session import RealtimeSession

router = APIRouter(tags=["Realtime"])
logger = logging.getLogger("gk_express.realtime")

# Application-defined close codes
WS_CLOSE_UNAUTHORIZED = 4401
WS_CLOSE_FORBIDDEN = 4403


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    token: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    # Identity comes from the directory, resolved once at connect time
    try:
        identity = await resolve_identity(db, verify_token(token))
    except AuthenticationError:
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
        return
    except ForbiddenError:
        await websocket.close(code=WS_CLOSE_FORBIDDEN)
        return
    finally:
        # No database access after the handshake
        await db.close()

    await websocket.accept()

    session = RealtimeSession(
        connection_id=str(uuid.uuid4()),
        identity=identity,
        bus=websocket.app.state.bus,
        presence=websocket.app.state.presence,
    )
    session.open(websocket)

    try:
        while True:
            text = await websocket.receive_text()
            # Keep-alives
            if text.strip().lower() in {"ping", "keepalive"}:
                await websocket.send_text("pong")
                continue
            try:
                frame = json.loads(text)
            except ValueError:
                await websocket.send_json({"event": "error", "data": {"message": "Invalid JSON frame"}})
                continue
            if not isinstance(frame, dict):
                await websocket.send_json({"event": "error", "data": {"message": "Frame must be an object"}})
                continue
            await session.handle(frame.get("event"), frame.get("data"))
    except WebSocketDisconnect:
        pass
    finally:
        await session.close()
