"""Deposit flow: collect an amount and hand the party a checkout link."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from walletbot.modules.conversation import Option
from walletbot.modules.gateway import CheckoutHandle
from walletbot.modules.ledger import Party

from .base import Flow, FlowOutcome, FlowRequest
from .exceptions import IncompleteProfileError

logger = logging.getLogger(__name__)

PAY_OPTION_ID = "pay"


@dataclass(slots=True)
class DepositPlan:
    party: Party
    amount: Decimal


class DepositFlow(Flow[DepositPlan, CheckoutHandle]):
    name = "deposit"
    not_registered_message = "Please register first to make a deposit."

    async def authorize(self, request: FlowRequest) -> Party:
        party = await super().authorize(request)
        if not party.has_complete_profile:
            raise IncompleteProfileError(f"party {party.conversation_id} has no handle or phone number")
        return party

    async def collect(self, request: FlowRequest, party: Optional[Party]) -> DepositPlan:
        limits = self.context.settings.limits
        amount = await self.context.inputs.collect_amount(
            request.conversation_id,
            f"Enter amount to deposit ({self.format_amount(limits.deposit_min)} - "
            f"{self.format_amount(limits.deposit_max)}):",
            limits.deposit_min,
            limits.deposit_max,
        )
        return DepositPlan(party=party, amount=amount)

    async def execute(self, request: FlowRequest, plan: DepositPlan) -> CheckoutHandle:
        checkout = await self.context.gateway.initialize_deposit(
            plan.amount, plan.party.handle, plan.party.phone_number
        )
        await self.context.deposits.create_order(
            conversation_id=request.conversation_id,
            reference=checkout.reference,
            amount=plan.amount,
            checkout_url=checkout.checkout_url,
        )
        return checkout

    async def settle(self, request: FlowRequest, plan: DepositPlan, result: Optional[CheckoutHandle]) -> FlowOutcome:
        await self.say(
            request.conversation_id,
            "Complete your payment by clicking the button below.",
            options=[Option(PAY_OPTION_ID, "Pay Now", url=result.checkout_url)],
        )
        return self.completed(
            request,
            reference=result.reference,
            data={"amount": str(plan.amount), "checkout_url": result.checkout_url},
        )
