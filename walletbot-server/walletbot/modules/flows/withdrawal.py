"""Withdrawal flow.

The party is debited only after the gateway reports a terminal success for
the payout. Everything from the balance re-check to the ledger write runs
under the party's hold, so two withdrawals from one party cannot both pass
the balance check.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from walletbot.core.config import PayoutMethod
from walletbot.modules.conversation import Option
from walletbot.modules.conversation.validators import WALLET_NUMBER_PATTERN, is_account_name, matches
from walletbot.modules.gateway import GatewayError, VerificationResult
from walletbot.modules.ledger import (
    InsufficientBalanceError,
    LedgerWriteError,
    NewTransactionRecord,
    Party,
    TransactionKind,
    TransactionStatus,
    WithdrawalSettlement,
)

from .base import Flow, FlowOutcome, FlowRequest
from .exceptions import WithdrawalNotSettledError

logger = logging.getLogger(__name__)

METHOD_OPTION_PREFIX = "method_"
INSUFFICIENT_BALANCE_MESSAGE = "Insufficient balance for this withdrawal."


@dataclass(slots=True)
class WithdrawalPlan:
    amount: Decimal
    method: PayoutMethod
    account_number: str
    account_name: str


class WithdrawalFlow(Flow[WithdrawalPlan, WithdrawalSettlement]):
    name = "withdraw"
    not_registered_message = "Please register first to withdraw funds."

    async def collect(self, request: FlowRequest, party: Optional[Party]) -> WithdrawalPlan:
        conversation_id = request.conversation_id
        limits = self.context.settings.limits
        amount = await self.context.inputs.collect_amount(
            conversation_id,
            f"Enter amount to withdraw ({self.format_amount(limits.withdrawal_min)} - "
            f"{self.format_amount(limits.withdrawal_max)}):",
            limits.withdrawal_min,
            limits.withdrawal_max,
        )
        await self._ensure_balance(conversation_id, amount)

        method = await self._select_method(conversation_id)
        account_number = await self.context.inputs.collect(
            conversation_id,
            f"Enter your {method.name} wallet number:",
            matches(WALLET_NUMBER_PATTERN),
        )
        account_name = await self.context.inputs.collect(
            conversation_id,
            "Enter the account holder's full name:",
            is_account_name,
        )
        return WithdrawalPlan(
            amount=amount,
            method=method,
            account_number=account_number,
            account_name=account_name.strip(),
        )

    async def execute(self, request: FlowRequest, plan: WithdrawalPlan) -> WithdrawalSettlement:
        conversation_id = request.conversation_id
        ledger = self.context.ledger
        async with ledger.hold(conversation_id):
            await self._ensure_balance(conversation_id, plan.amount)

            accepted = await self.context.gateway.initiate_withdrawal(
                plan.amount, plan.account_name, plan.account_number, plan.method.id
            )
            logger.info("Withdrawal %s accepted for %s, verifying", accepted.reference, conversation_id)

            try:
                verification = await self._verify(accepted.reference)
            except GatewayError:
                await self._record_unsettled(request, plan, accepted.reference, TransactionStatus.PENDING, None)
                raise

            if not verification.succeeded:
                status = TransactionStatus.FAILED if verification.failed else TransactionStatus.PENDING
                await self._record_unsettled(request, plan, accepted.reference, status, verification)
                raise WithdrawalNotSettledError(
                    f"withdrawal {accepted.reference} ended as {verification.status}",
                    reference=accepted.reference,
                    status=verification.status,
                )

            return await ledger.settle_withdrawal(
                conversation_id=conversation_id,
                amount=plan.amount,
                reference=accepted.reference,
                status=TransactionStatus.SUCCESS,
                details=self._details(plan, verification),
            )

    async def settle(
        self, request: FlowRequest, plan: WithdrawalPlan, result: Optional[WithdrawalSettlement]
    ) -> FlowOutcome:
        balance = result.party.balance
        await self.say(
            request.conversation_id,
            f"✅ Withdrawal of {self.format_amount(plan.amount)} successful!\n"
            f"New balance: {self.format_amount(balance)}",
        )
        return self.completed(
            request,
            reference=result.record.reference,
            data={"amount": str(plan.amount), "balance": str(balance), "method": plan.method.name},
        )

    async def _ensure_balance(self, conversation_id: str, amount: Decimal) -> None:
        if not await self.context.ledger.sufficient_balance(conversation_id, amount):
            raise InsufficientBalanceError(
                f"withdrawal of {amount} exceeds balance of {conversation_id}",
                user_message=INSUFFICIENT_BALANCE_MESSAGE,
            )

    async def _select_method(self, conversation_id: str) -> PayoutMethod:
        methods = self.context.settings.payout_methods
        option_id = await self.context.choices.select_one(
            conversation_id,
            "Select your wallet type:",
            [Option(f"{METHOD_OPTION_PREFIX}{method.id}", method.name) for method in methods],
        )
        method = self.context.settings.payout_method(option_id[len(METHOD_OPTION_PREFIX):])
        if method is None:
            raise LookupError(f"unknown payout option {option_id}")
        return method

    async def _verify(self, reference: str) -> VerificationResult:
        gateway_settings = self.context.settings.gateway
        attempts = max(1, gateway_settings.verify_attempts)
        result = await self.context.gateway.verify_withdrawal(reference)
        for _ in range(attempts - 1):
            if result.is_terminal:
                break
            await asyncio.sleep(gateway_settings.verify_interval)
            result = await self.context.gateway.verify_withdrawal(reference)
        return result

    async def _record_unsettled(
        self,
        request: FlowRequest,
        plan: WithdrawalPlan,
        reference: str,
        status: TransactionStatus,
        verification: Optional[VerificationResult],
    ) -> None:
        """Best-effort audit record; the caller re-raises the original failure."""
        logger.warning("Withdrawal %s for %s not settled (%s)", reference, request.conversation_id, status.value)
        try:
            await self.context.ledger.append_record(
                NewTransactionRecord(
                    reference=reference,
                    conversation_id=request.conversation_id,
                    amount=plan.amount,
                    kind=TransactionKind.WITHDRAWAL,
                    status=status,
                    currency=self.currency,
                    details=self._details(plan, verification),
                )
            )
        except LedgerWriteError as exc:
            logger.error("Could not record unsettled withdrawal %s for %s: %s", reference, request.conversation_id, exc)

    @staticmethod
    def _details(plan: WithdrawalPlan, verification: Optional[VerificationResult]) -> dict[str, str]:
        details = {
            "method_id": plan.method.id,
            "method_name": plan.method.name,
            "account_number": plan.account_number,
            "account_name": plan.account_name,
        }
        if verification is not None:
            details["bank_name"] = verification.bank_name or plan.method.name
            details["gateway_status"] = verification.status
        return details
