# file: portaal/api/v1/presence.py

import logging
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from portaal.api.deps import resolve_identity
from portaal.services.presence_service import PresenceTracker

router = APIRouter()
logger = logging.getLogger("presence_api")


@router.websocket("/ws")
async def presence_socket(
    websocket: WebSocket,
    dealer_id: str | None = Query(None),
    session_id: str | None = Query(None),
):
    provider = websocket.app.state.repositories
    settings = websocket.app.state.settings

    with provider.open() as repos:
        identity = resolve_identity(repos, session_id, dealer_id)

    if identity is None:
        await websocket.close(code=4401)
        return

    await websocket.accept()

    async def push(online_ids: set[str]):
        await websocket.send_json({"type": "online", "dealer_ids": sorted(online_ids)})

    tracker = PresenceTracker(
        provider.open,
        identity.dealer_id,
        on_update=push,
        refresh_interval=settings.PRESENCE_REFRESH_SECONDS,
        touch_interval=settings.PRESENCE_TOUCH_SECONDS,
    )
    await tracker.start()

    try:
        while True:
            # só mantém o socket aberto; qualquer mensagem força um refresh
            await websocket.receive_text()
            await tracker.refresh()
    except WebSocketDisconnect:
        logger.info(f"[PresenceWS] Desconectado viewer={identity.dealer_id}")
    finally:
        await tracker.stop()
