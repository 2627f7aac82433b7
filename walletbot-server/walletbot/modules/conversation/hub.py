"""Per-conversation listener registry feeding inbound turns to waiting collectors."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, FrozenSet, Optional

from .exceptions import ListenerBusyError
from .models import Selection, Turn

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SelectionListener:
    future: "asyncio.Future[Selection]"
    option_ids: FrozenSet[str]
    message_id: Optional[str] = None

    def accepts(self, selection: Selection) -> bool:
        if self.future.done():
            return False
        if selection.option_id not in self.option_ids:
            return False
        if self.message_id is None:
            # prompt still in flight; a tagged press can only be for an older message
            return selection.message_id is None
        return selection.message_id == self.message_id


@dataclass(slots=True)
class ConversationSession:
    conversation_id: str
    turn_waiter: "Optional[asyncio.Future[Turn]]" = None
    selection_listener: Optional[SelectionListener] = None

    def is_idle(self) -> bool:
        return self.turn_waiter is None and self.selection_listener is None


class ConversationHub:
    """Routes inbound turns and selections to the collector waiting on that conversation.

    Listeners only exist inside ``listen_turn``/``listen_selection`` scopes, so
    a listener never outlives the wait that registered it.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, ConversationSession] = {}

    def session(self, conversation_id: str) -> Optional[ConversationSession]:
        return self._sessions.get(conversation_id)

    def is_waiting_for_turn(self, conversation_id: str) -> bool:
        session = self._sessions.get(conversation_id)
        return session is not None and session.turn_waiter is not None

    def is_waiting_for_selection(self, conversation_id: str) -> bool:
        session = self._sessions.get(conversation_id)
        return session is not None and session.selection_listener is not None

    def deliver_turn(self, turn: Turn) -> bool:
        """Hand ``turn`` to the waiting collector; ``False`` when nobody is listening."""
        session = self._sessions.get(turn.conversation_id)
        waiter = session.turn_waiter if session else None
        if waiter is None or waiter.done():
            logger.debug("Unclaimed turn from %s", turn.conversation_id)
            return False
        waiter.set_result(turn)
        return True

    def deliver_selection(self, selection: Selection) -> bool:
        session = self._sessions.get(selection.conversation_id)
        listener = session.selection_listener if session else None
        if listener is None or not listener.accepts(selection):
            logger.debug(
                "Ignored selection %s (%s) from %s",
                selection.id,
                selection.option_id,
                selection.conversation_id,
            )
            return False
        listener.future.set_result(selection)
        return True

    def _acquire(self, conversation_id: str) -> ConversationSession:
        session = self._sessions.get(conversation_id)
        if session is None:
            session = self._sessions[conversation_id] = ConversationSession(conversation_id)
        return session

    def _release(self, session: ConversationSession) -> None:
        if session.is_idle() and self._sessions.get(session.conversation_id) is session:
            del self._sessions[session.conversation_id]

    @asynccontextmanager
    async def listen_turn(self, conversation_id: str) -> "AsyncIterator[asyncio.Future[Turn]]":
        session = self._acquire(conversation_id)
        if session.turn_waiter is not None:
            raise ListenerBusyError(f"conversation {conversation_id} already has a turn listener")
        waiter: "asyncio.Future[Turn]" = asyncio.get_running_loop().create_future()
        session.turn_waiter = waiter
        try:
            yield waiter
        finally:
            if not waiter.done():
                waiter.cancel()
            session.turn_waiter = None
            self._release(session)

    @asynccontextmanager
    async def listen_selection(
        self, conversation_id: str, option_ids: FrozenSet[str]
    ) -> AsyncIterator[SelectionListener]:
        session = self._acquire(conversation_id)
        if session.selection_listener is not None:
            raise ListenerBusyError(f"conversation {conversation_id} already has a selection listener")
        listener = SelectionListener(
            future=asyncio.get_running_loop().create_future(),
            option_ids=frozenset(option_ids),
        )
        session.selection_listener = listener
        try:
            yield listener
        finally:
            if not listener.future.done():
                listener.future.cancel()
            session.selection_listener = None
            self._release(session)
