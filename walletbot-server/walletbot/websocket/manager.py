"""Connection manager for chat clients; the outbound side of the conversation transport."""
import asyncio
import json
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Sequence

from fastapi import WebSocket

from walletbot.modules.conversation import Option

logger = logging.getLogger(__name__)

MESSAGE_TEXT = "message"
MESSAGE_MEDIA = "media"
MESSAGE_SELECTION_ACK = "selection_ack"
MESSAGE_CLEAR_OPTIONS = "clear_options"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_options(options: Optional[Sequence[Option]]) -> list[dict]:
    return [
        {"id": option.id, "label": option.label, **({"url": option.url} if option.url else {})}
        for option in options or ()
    ]


class ConnectionManager:
    """Keeps one websocket per conversation and implements ``ConversationTransport``.

    Messages for a conversation without a live socket are dropped with a
    warning; the message id is still returned so collectors behave the same.
    """

    def __init__(self, timeout: int = 300, check_interval: int = 30) -> None:
        self.connections: Dict[str, WebSocket] = {}
        self.heartbeat_tasks: Dict[str, asyncio.Task] = {}
        self.last_heartbeat: Dict[str, datetime] = {}
        self.selection_owners: Dict[str, str] = {}
        self.timeout = timedelta(seconds=timeout)
        self.check_interval = check_interval

    async def connect(self, conversation_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self.register(conversation_id, websocket)

    def register(self, conversation_id: str, websocket: WebSocket) -> None:
        self.connections[conversation_id] = websocket
        self.last_heartbeat[conversation_id] = _utcnow()
        self._start_heartbeat_monitor(conversation_id)
        logger.info("Conversation %s connected", conversation_id)

    async def disconnect(self, conversation_id: str) -> None:
        self.connections.pop(conversation_id, None)
        self.last_heartbeat.pop(conversation_id, None)
        task = self.heartbeat_tasks.pop(conversation_id, None)
        if task and task is not asyncio.current_task():
            task.cancel()
        for selection_id, owner in list(self.selection_owners.items()):
            if owner == conversation_id:
                del self.selection_owners[selection_id]
        logger.info("Conversation %s disconnected", conversation_id)

    def get_online_count(self) -> int:
        return len(self.connections)

    def update_heartbeat(self, conversation_id: str) -> None:
        self.last_heartbeat[conversation_id] = _utcnow()

    def track_selection(self, selection_id: str, conversation_id: str) -> None:
        self.selection_owners[selection_id] = conversation_id

    async def send_message(self, conversation_id: str, message: dict) -> bool:
        websocket = self.connections.get(conversation_id)
        if websocket is None:
            logger.warning("Conversation %s is not connected", conversation_id)
            return False
        try:
            await websocket.send_text(json.dumps(message, ensure_ascii=False))
            return True
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Sending to conversation %s failed: %s", conversation_id, exc)
            await self.disconnect(conversation_id)
            return False

    async def send_text(
        self,
        conversation_id: str,
        text: str,
        *,
        options: Optional[Sequence[Option]] = None,
    ) -> str:
        message_id = uuid.uuid4().hex
        await self.send_message(
            conversation_id,
            {"type": MESSAGE_TEXT, "id": message_id, "text": text, "options": _serialize_options(options)},
        )
        return message_id

    async def send_media(
        self,
        conversation_id: str,
        media: str,
        *,
        caption: Optional[str] = None,
        options: Optional[Sequence[Option]] = None,
    ) -> str:
        message_id = uuid.uuid4().hex
        await self.send_message(
            conversation_id,
            {
                "type": MESSAGE_MEDIA,
                "id": message_id,
                "media": media,
                "caption": caption,
                "options": _serialize_options(options),
            },
        )
        return message_id

    async def acknowledge_selection(self, selection_id: str) -> None:
        conversation_id = self.selection_owners.pop(selection_id, None)
        if conversation_id is None:
            logger.debug("Selection %s has no known owner", selection_id)
            return
        await self.send_message(conversation_id, {"type": MESSAGE_SELECTION_ACK, "id": selection_id})

    async def clear_affordances(self, conversation_id: str, message_id: str) -> None:
        await self.send_message(conversation_id, {"type": MESSAGE_CLEAR_OPTIONS, "message_id": message_id})

    async def close_all(self) -> None:
        for conversation_id in list(self.connections):
            websocket = self.connections.get(conversation_id)
            await self.disconnect(conversation_id)
            if websocket is not None:
                try:
                    await websocket.close()
                except Exception as exc:  # pylint: disable=broad-except
                    logger.debug("Closing socket of %s failed: %s", conversation_id, exc)

    def _start_heartbeat_monitor(self, conversation_id: str) -> None:
        task = self.heartbeat_tasks.get(conversation_id)
        if task:
            task.cancel()
        self.heartbeat_tasks[conversation_id] = asyncio.create_task(self._heartbeat_monitor(conversation_id))

    async def _heartbeat_monitor(self, conversation_id: str) -> None:
        try:
            while True:
                await asyncio.sleep(self.check_interval)
                last = self.last_heartbeat.get(conversation_id)
                if last and _utcnow() - last > self.timeout:
                    logger.warning("Conversation %s missed its heartbeat, disconnecting", conversation_id)
                    await self.disconnect(conversation_id)
                    break
        except asyncio.CancelledError:
            logger.debug("Heartbeat monitor for %s cancelled", conversation_id)
