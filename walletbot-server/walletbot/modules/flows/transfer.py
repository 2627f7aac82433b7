"""Peer-to-peer transfer flow."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from walletbot.core.crypto import generate_reference
from walletbot.modules.conversation.validators import PHONE_PATTERN, matches
from walletbot.modules.ledger import InsufficientBalanceError, Party, TransferSettlement

from .base import Flow, FlowOutcome, FlowRequest
from .exceptions import RecipientNotFoundError, SelfTransferError

logger = logging.getLogger(__name__)

INSUFFICIENT_BALANCE_MESSAGE = "Insufficient balance for this transfer."


@dataclass(slots=True)
class TransferPlan:
    sender: Party
    recipient: Party
    amount: Decimal


class TransferFlow(Flow[TransferPlan, TransferSettlement]):
    name = "transfer"
    not_registered_message = "Please register first to transfer funds."

    async def collect(self, request: FlowRequest, party: Optional[Party]) -> TransferPlan:
        conversation_id = request.conversation_id
        ledger = self.context.ledger
        limits = self.context.settings.limits

        amount = await self.context.inputs.collect_amount(
            conversation_id,
            f"Enter amount to transfer ({self.format_amount(limits.transfer_min)} - "
            f"{self.format_amount(limits.transfer_max)}):",
            limits.transfer_min,
            limits.transfer_max,
        )
        if not await ledger.sufficient_balance(conversation_id, amount):
            raise InsufficientBalanceError(
                f"transfer of {amount} exceeds balance of {conversation_id}",
                user_message=INSUFFICIENT_BALANCE_MESSAGE,
            )

        phone_number = await self.context.inputs.collect(
            conversation_id,
            "Enter recipient's phone number (format: 09xxxxxxxx):",
            matches(PHONE_PATTERN),
        )
        recipient = await ledger.find_party_by_phone(phone_number)
        if recipient is None:
            raise RecipientNotFoundError(f"no party with phone {phone_number}")
        if recipient.conversation_id == conversation_id:
            raise SelfTransferError(f"{conversation_id} tried to transfer to itself")
        return TransferPlan(sender=party, recipient=recipient, amount=amount)

    async def execute(self, request: FlowRequest, plan: TransferPlan) -> TransferSettlement:
        reference = generate_reference("TR")
        async with self.context.ledger.hold(plan.sender.conversation_id, plan.recipient.conversation_id):
            return await self.context.ledger.settle_transfer(
                sender_id=plan.sender.conversation_id,
                recipient_id=plan.recipient.conversation_id,
                amount=plan.amount,
                reference=reference,
            )

    async def settle(
        self, request: FlowRequest, plan: TransferPlan, result: Optional[TransferSettlement]
    ) -> FlowOutcome:
        reference = result.record.reference
        amount = self.format_amount(plan.amount)
        await self._notify(
            result.sender.conversation_id,
            f"Transfer successful!\nAmount: {amount}\nTo: {result.recipient.phone_number}\n"
            f"Transaction ID: {reference}",
        )
        await self._notify(
            result.recipient.conversation_id,
            f"You received {amount} from {result.sender.phone_number}\nTransaction ID: {reference}",
        )
        return self.completed(
            request,
            reference=reference,
            data={
                "amount": str(plan.amount),
                "recipient": result.recipient.conversation_id,
                "sender_balance": str(result.sender.balance),
            },
        )

    async def _notify(self, conversation_id: str, text: str) -> None:
        # the money has moved; a lost notification must not surface as a failure
        try:
            await self.say(conversation_id, text)
        except Exception as e:  # pylint: disable=broad-except
            logger.error("Failed to notify %s about a transfer: %s", conversation_id, e)
