"""Outbound side of the conversational transport."""

from __future__ import annotations

from typing import Protocol, Sequence

from .models import Option


class ConversationTransport(Protocol):
    async def send_text(
        self,
        conversation_id: str,
        text: str,
        *,
        options: Sequence[Option] | None = None,
    ) -> str:
        """Deliver ``text`` and return the transport's message id."""
        ...

    async def send_media(
        self,
        conversation_id: str,
        media: str,
        *,
        caption: str | None = None,
        options: Sequence[Option] | None = None,
    ) -> str:
        ...

    async def acknowledge_selection(self, selection_id: str) -> None:
        ...

    async def clear_affordances(self, conversation_id: str, message_id: str) -> None:
        ...
