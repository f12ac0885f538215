# findme/api/v1/chat.py
import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from findme.api.v1.auth import ACCESS_COOKIE, actor_from_token, get_current_actor
from findme.core.errors import SessionError
from findme.models.actor import Actor
from findme.models.message import ConversationDetail, ConversationSummary, Message, MessageIn
from findme.services import conversations
from findme.services.realtime import get_feed

logger = logging.getLogger(__name__)

router = APIRouter()

# application-defined close code for an unauthenticated socket
WS_UNAUTHORIZED = 4401


@router.get("/chat/conversations", response_model=List[ConversationSummary])
async def get_conversation_partners(actor: Actor = Depends(get_current_actor)):
    return await conversations.get_conversation_partners(actor.id)


async def _push_messages(websocket: WebSocket, messages) -> None:
    async for message in messages:
        await websocket.send_json(message)


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    # clients never send on this socket; reading is how a hang-up is noticed
    while True:
        event = await websocket.receive()
        if event["type"] == "websocket.disconnect":
            return


@router.websocket("/chat/feed")
async def message_feed(websocket: WebSocket, token: Optional[str] = Query(None)):
    """
    Push every new message addressed to the connected user. Nothing is
    replayed on (re)connect; load the conversation to catch up.
    The subscription is registered before the socket is accepted and is
    released as soon as the client disconnects.
    """
    token = token or websocket.cookies.get(ACCESS_COOKIE)
    try:
        if not token:
            raise SessionError("Not authenticated")
        actor = await actor_from_token(token)
    except SessionError as exc:
        await websocket.close(code=WS_UNAUTHORIZED, reason=exc.message)
        return

    async with get_feed().subscribe(actor.id) as messages:
        await websocket.accept()
        logger.info("Feed subscriber connected for %s", actor.id)
        pump = asyncio.create_task(_push_messages(websocket, messages))
        watcher = asyncio.create_task(_wait_for_disconnect(websocket))
        try:
            await asyncio.wait({pump, watcher}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (pump, watcher):
                task.cancel()
            await asyncio.gather(pump, watcher, return_exceptions=True)
        if pump.done() and not pump.cancelled():
            exc = pump.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.error("Feed push for %s failed: %r", actor.id, exc)
    logger.info("Feed subscriber for %s disconnected", actor.id)


@router.get("/chat/{partner_id}", response_model=ConversationDetail)
async def get_conversation(partner_id: str, actor: Actor = Depends(get_current_actor)):
    return await conversations.load_conversation(actor.id, partner_id)


@router.post("/chat/{partner_id}/messages", status_code=201, response_model=Message)
async def post_message(partner_id: str, payload: MessageIn, actor: Actor = Depends(get_current_actor)):
    return await conversations.send_message(actor.id, partner_id, payload.message)


@router.post("/chat/{partner_id}/read")
async def mark_messages_as_read(partner_id: str, actor: Actor = Depends(get_current_actor)):
    updated = await conversations.mark_messages_as_read(p_sender_id=partner_id, p_receiver_id=actor.id)
    return {"updated": updated}
