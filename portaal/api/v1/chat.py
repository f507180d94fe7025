# file: portaal/api/v1/chat.py

import asyncio
import logging
from fastapi import APIRouter, Depends, Query, Request, Response, WebSocket, WebSocketDisconnect, status

from portaal.api.deps import Identity, get_identity, get_repositories, resolve_identity
from portaal.core.errors import PortaalError
from portaal.realtime.notifier import ChangeNotifier, MessageFeed
from portaal.repositories import Repositories
from portaal.schemas.messages import ConversationSummary, MarkReadRequest, MessageCreate, MessageEvent, MessageRead
from portaal.services import chat_service, messages_service

router = APIRouter()
logger = logging.getLogger("chat_api")


def get_notifier(request: Request) -> ChangeNotifier:
    return request.app.state.notifier


@router.get("/conversations", response_model=list[ConversationSummary])
def conversation_summaries(
    repos: Repositories = Depends(get_repositories),
    identity: Identity = Depends(get_identity),
):
    return chat_service.get_conversation_summaries(repos, identity.dealer_id)


@router.get("/messages/{other_id}", response_model=list[MessageRead])
def conversation_history(
    other_id: str,
    repos: Repositories = Depends(get_repositories),
    identity: Identity = Depends(get_identity),
):
    return messages_service.get_conversation(repos, identity.dealer_id, other_id)


@router.post(
    "/messages",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
    responses={204: {"description": "Mensagem vazia, nada foi enviado"}},
)
async def send_message(
    payload: MessageCreate,
    repos: Repositories = Depends(get_repositories),
    identity: Identity = Depends(get_identity),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    message = chat_service.send_message(repos, identity.dealer_id, payload.receiver_id, payload.message)
    if message is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    await notifier.publish(MessageEvent(type="INSERT", message=message))
    return message


@router.post("/messages/read", response_model=list[MessageRead])
async def mark_messages_read(
    payload: MarkReadRequest,
    repos: Repositories = Depends(get_repositories),
    _identity: Identity = Depends(get_identity),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    changed = messages_service.mark_as_read(repos, payload.ids)
    await notifier.publish_many("UPDATE", changed)
    return changed


@router.post("/conversations/{other_id}/read", response_model=list[MessageRead])
async def mark_conversation_read(
    other_id: str,
    repos: Repositories = Depends(get_repositories),
    identity: Identity = Depends(get_identity),
    notifier: ChangeNotifier = Depends(get_notifier),
):
    changed = chat_service.mark_conversation_as_read(repos, identity.dealer_id, other_id)
    await notifier.publish_many("UPDATE", changed)
    return changed


# ============================================================
# WebSocket: histórico + eventos do par
# ============================================================

def _event_payload(event: MessageEvent) -> dict:
    return {"type": event.type, "message": event.message.model_dump(mode="json")}


def _history_payload(feed: MessageFeed) -> dict:
    return {"type": "history", "messages": [m.model_dump(mode="json") for m in feed.messages]}


@router.websocket("/ws")
async def chat_socket(
    websocket: WebSocket,
    other_id: str = Query(...),
    dealer_id: str | None = Query(None),
    session_id: str | None = Query(None),
):
    provider = websocket.app.state.repositories
    notifier: ChangeNotifier = websocket.app.state.notifier

    with provider.open() as repos:
        identity = resolve_identity(repos, session_id, dealer_id)
        history = messages_service.get_conversation(repos, identity.dealer_id, other_id) if identity else []

    if identity is None:
        await websocket.close(code=4401)
        return

    viewer_id = identity.dealer_id
    await websocket.accept()
    feed = MessageFeed(history)
    await websocket.send_json(_history_payload(feed))
    logger.info(f"[ChatWS] Conectado viewer={viewer_id} other={other_id} backend={notifier.name}")

    async def pump():
        async for event in notifier.subscribe(viewer_id, other_id, baseline=history):
            if feed.apply(event):
                await websocket.send_json(_event_payload(event))

    task = asyncio.create_task(pump())

    try:
        while True:
            data = await websocket.receive_json()
            if not isinstance(data, dict):
                await websocket.send_json({"type": "error", "detail": "Invalid payload"})
                continue
            action = data.get("action")

            try:
                if action == "send":
                    with provider.open() as repos:
                        message = chat_service.send_message(repos, viewer_id, other_id, data.get("message", ""))
                    if message is None:
                        continue
                    event = MessageEvent(type="INSERT", message=message)
                    if feed.apply(event):
                        await websocket.send_json(_event_payload(event))
                    await notifier.publish(event)

                elif action == "read":
                    ids = [str(i) for i in data.get("ids", [])]
                    with provider.open() as repos:
                        changed = messages_service.mark_as_read(repos, ids)
                    feed.mark_read([m.id for m in changed])
                    await notifier.publish_many("UPDATE", changed)

                elif action == "refresh":
                    with provider.open() as repos:
                        feed = MessageFeed(messages_service.get_conversation(repos, viewer_id, other_id))
                    await websocket.send_json(_history_payload(feed))

                else:
                    await websocket.send_json({"type": "error", "detail": f"Unknown action: {action}"})

            except PortaalError as e:
                await websocket.send_json({"type": "error", "detail": str(e)})

    except WebSocketDisconnect:
        logger.info(f"[ChatWS] Desconectado viewer={viewer_id} other={other_id}")
    finally:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
