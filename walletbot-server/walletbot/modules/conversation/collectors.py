"""Input and choice collectors built on the conversation hub."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Optional, Sequence

from .exceptions import ConversationTimeoutError
from .hub import ConversationHub
from .models import Option
from .transport import ConversationTransport
from .validators import Predicate, amount_between, parse_amount

logger = logging.getLogger(__name__)

DEFAULT_REJECTION = "Invalid input. Please try again."


class InputCollector:
    """Asks for free text until the answer satisfies a predicate."""

    def __init__(
        self,
        transport: ConversationTransport,
        hub: ConversationHub,
        *,
        timeout: float = 60.0,
        rejection: str = DEFAULT_REJECTION,
    ) -> None:
        self._transport = transport
        self._hub = hub
        self._timeout = timeout
        self._rejection = rejection

    async def collect(
        self,
        conversation_id: str,
        prompt: str,
        predicate: Predicate,
        *,
        timeout: Optional[float] = None,
    ) -> str:
        budget = self._timeout if timeout is None else timeout
        message = prompt
        while True:
            async with self._hub.listen_turn(conversation_id) as waiter:
                await self._transport.send_text(conversation_id, message)
                try:
                    turn = await asyncio.wait_for(waiter, budget)
                except asyncio.TimeoutError:
                    logger.info("Input from %s timed out after %ss", conversation_id, budget)
                    raise ConversationTimeoutError(f"no reply from {conversation_id}") from None

            text = turn.text.strip()
            if predicate(text):
                return text
            logger.debug("Rejected input from %s: %r", conversation_id, text)
            message = f"{self._rejection}\n{prompt}"

    async def collect_amount(
        self,
        conversation_id: str,
        prompt: str,
        minimum: Decimal,
        maximum: Decimal,
        *,
        timeout: Optional[float] = None,
    ) -> Decimal:
        text = await self.collect(conversation_id, prompt, amount_between(minimum, maximum), timeout=timeout)
        return parse_amount(text)


class ChoiceCollector:
    """Offers options as single-use buttons and waits for exactly one pick."""

    def __init__(
        self,
        transport: ConversationTransport,
        hub: ConversationHub,
        *,
        timeout: float = 60.0,
    ) -> None:
        self._transport = transport
        self._hub = hub
        self._timeout = timeout

    async def select_one(
        self,
        conversation_id: str,
        prompt: str,
        options: Sequence[Option],
        *,
        timeout: Optional[float] = None,
    ) -> str:
        budget = self._timeout if timeout is None else timeout
        option_ids = frozenset(option.id for option in options)
        message_id: Optional[str] = None
        try:
            async with self._hub.listen_selection(conversation_id, option_ids) as listener:
                message_id = await self._transport.send_text(conversation_id, prompt, options=options)
                listener.message_id = message_id
                try:
                    selection = await asyncio.wait_for(listener.future, budget)
                except asyncio.TimeoutError:
                    logger.info("Selection from %s timed out after %ss", conversation_id, budget)
                    raise ConversationTimeoutError(f"no selection from {conversation_id}") from None
            await self._transport.acknowledge_selection(selection.id)
        finally:
            if message_id is not None:
                await self._clear(conversation_id, message_id)
        return selection.option_id

    async def _clear(self, conversation_id: str, message_id: str) -> None:
        try:
            await self._transport.clear_affordances(conversation_id, message_id)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Could not clear options on %s/%s: %s", conversation_id, message_id, exc)
