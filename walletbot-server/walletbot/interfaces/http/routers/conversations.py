"""WebSocket endpoint for chat clients."""
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from walletbot.core.container import ApplicationContainer
from walletbot.interfaces.http.deps import get_container
from walletbot.modules.conversation import Selection, Turn
from walletbot.modules.flows import FlowRequest
from walletbot.schemas import WSHeartbeat, WSSelection, WSText
from walletbot.websocket.manager import ConnectionManager

logger = logging.getLogger(__name__)

router = APIRouter()

MESSAGE_TEXT = "text"
MESSAGE_SELECTION = "selection"
MESSAGE_HEARTBEAT = "heartbeat"
MESSAGE_ERROR = "error"


def _parse_json(raw: str) -> dict:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.error("Invalid JSON payload: %s", exc)
        return {}
    return payload if isinstance(payload, dict) else {}


def _command(text: str) -> Optional[str]:
    """``/withdraw@bot extra`` -> ``withdraw``."""
    if not text.startswith("/"):
        return None
    return text[1:].split(maxsplit=1)[0].split("@", 1)[0].lower() if len(text) > 1 else None


@router.websocket("/ws/conversations/{conversation_id}")
async def conversation_socket(
    websocket: WebSocket,
    conversation_id: str,
    handle: Optional[str] = Query(None),
    container: ApplicationContainer = Depends(get_container),
):
    manager = container.transport
    if not isinstance(manager, ConnectionManager):
        await websocket.close(code=1011, reason="websocket transport disabled")
        return

    await manager.connect(conversation_id, websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            await _handle_message(container, manager, conversation_id, handle, raw)
    except WebSocketDisconnect:
        logger.info("Conversation %s closed its socket", conversation_id)
    finally:
        await manager.disconnect(conversation_id)


async def _handle_message(
    container: ApplicationContainer,
    manager: ConnectionManager,
    conversation_id: str,
    handle: Optional[str],
    raw: str,
) -> None:
    payload = _parse_json(raw)
    message_type = payload.get("type")
    manager.update_heartbeat(conversation_id)
    try:
        if message_type == MESSAGE_TEXT:
            frame = WSText.model_validate(payload)
            await _handle_text(container, conversation_id, frame.handle or handle, frame.text)
        elif message_type == MESSAGE_SELECTION:
            frame = WSSelection.model_validate(payload)
            manager.track_selection(frame.id, conversation_id)
            delivered = container.hub.deliver_selection(
                Selection(
                    id=frame.id,
                    conversation_id=conversation_id,
                    option_id=frame.option_id,
                    message_id=frame.message_id,
                )
            )
            if not delivered:
                manager.selection_owners.pop(frame.id, None)
        elif message_type == MESSAGE_HEARTBEAT:
            WSHeartbeat.model_validate(payload)
        else:
            await manager.send_message(conversation_id, {"type": MESSAGE_ERROR, "detail": "unsupported message"})
    except ValidationError as exc:
        logger.warning("Malformed %s frame from %s: %s", message_type, conversation_id, exc)
        await manager.send_message(conversation_id, {"type": MESSAGE_ERROR, "detail": "malformed message"})


async def _handle_text(container: ApplicationContainer, conversation_id: str, handle: Optional[str], text: str) -> None:
    runner = container.runner
    action = _command(text.strip())
    if action in runner.flows:
        await runner.start(action, FlowRequest(conversation_id=conversation_id, handle=handle))
        return
    if container.hub.deliver_turn(Turn(conversation_id=conversation_id, text=text, handle=handle)):
        return
    commands = " ".join(f"/{name}" for name in runner.actions)
    await container.transport.send_text(conversation_id, f"Available commands: {commands}")
