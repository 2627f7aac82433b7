"""Registration, balance and history flows."""

from __future__ import annotations

import logging
from typing import Optional

from walletbot.modules.conversation.validators import PHONE_PATTERN, matches
from walletbot.modules.ledger import AlreadyRegisteredError, Party, TransactionRecord

from .base import Flow, FlowOutcome, FlowRequest
from .exceptions import IncompleteProfileError

logger = logging.getLogger(__name__)


class RegistrationFlow(Flow[str, Party]):
    name = "register"

    async def authorize(self, request: FlowRequest) -> Optional[Party]:
        if await self.context.ledger.get_party(request.conversation_id) is not None:
            raise AlreadyRegisteredError(request.conversation_id)
        if not request.handle:
            raise IncompleteProfileError(
                f"conversation {request.conversation_id} has no handle",
                user_message="Username is required. Please set a username in your settings and try again.",
            )
        return None

    async def collect(self, request: FlowRequest, party: Optional[Party]) -> str:
        return await self.context.inputs.collect(
            request.conversation_id,
            "Please enter your phone number (10 digits, starting with '09'):",
            matches(PHONE_PATTERN),
        )

    async def execute(self, request: FlowRequest, plan: str) -> Party:
        return await self.context.ledger.register_party(request.conversation_id, request.handle, plan)

    async def settle(self, request: FlowRequest, plan: str, result: Optional[Party]) -> FlowOutcome:
        await self.say(request.conversation_id, "You are now registered! /deposit")
        return self.completed(request, data={"phone_number": result.phone_number})


class BalanceFlow(Flow[Party, None]):
    name = "balance"
    not_registered_message = "User not found. Please register first."

    async def collect(self, request: FlowRequest, party: Optional[Party]) -> Party:
        return party

    async def settle(self, request: FlowRequest, plan: Party, result: None) -> FlowOutcome:
        await self.say(request.conversation_id, f"Your current balance is: 💰 {self.format_amount(plan.balance)}")
        return self.completed(request, data={"balance": str(plan.balance)})


class HistoryFlow(Flow[list, None]):
    name = "history"
    limit = 10

    async def collect(self, request: FlowRequest, party: Optional[Party]) -> list[TransactionRecord]:
        return await self.context.ledger.list_records(request.conversation_id, limit=self.limit)

    async def settle(self, request: FlowRequest, plan: list[TransactionRecord], result: None) -> FlowOutcome:
        if not plan:
            await self.say(request.conversation_id, "No transactions yet.")
        else:
            lines = [self._describe(request.conversation_id, record) for record in plan]
            await self.say(request.conversation_id, "Recent transactions:\n" + "\n".join(lines))
        return self.completed(request, data={"count": len(plan)})

    def _describe(self, conversation_id: str, record: TransactionRecord) -> str:
        kind = record.kind.value
        if record.counterparty_id == conversation_id:
            kind = "received"
        when = record.created_at.strftime("%Y-%m-%d %H:%M") if record.created_at else "-"
        return f"{when} {kind} {self.format_amount(record.amount)} [{record.status.value}] {record.reference}"
