"""In-memory stand-ins for the transport, gateway and alert sink."""
import asyncio
from collections import defaultdict, deque
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional, Sequence

from walletbot.modules.conversation import ConversationHub, Option, Selection, Turn
from walletbot.modules.gateway import (
    CheckoutHandle,
    DepositVerification,
    GatewayError,
    VerificationResult,
    WithdrawalAccepted,
)


@dataclass(frozen=True)
class Pick:
    """Scripted button press for the next prompt that carries options."""

    option_id: str


@dataclass
class SentMessage:
    conversation_id: str
    text: str
    options: tuple
    message_id: str


class ScriptedTransport:
    """In-memory transport that answers prompts from a per-conversation script.

    A reply is consumed only when a collector is listening on that
    conversation, so plain notifications never eat scripted input.
    """

    def __init__(self, hub: ConversationHub) -> None:
        self.hub = hub
        self.sent: list[SentMessage] = []
        self.replies: dict[str, deque] = defaultdict(deque)
        self.acknowledged: list[str] = []
        self.cleared: list[tuple[str, str]] = []
        self.fail_for: set[str] = set()

    def script(self, conversation_id: str, *replies: Any) -> None:
        self.replies[conversation_id].extend(replies)

    def texts(self, conversation_id: str) -> list[str]:
        return [message.text for message in self.sent if message.conversation_id == conversation_id]

    async def send_text(self, conversation_id: str, text: str, *, options: Optional[Sequence[Option]] = None) -> str:
        if conversation_id in self.fail_for:
            raise ConnectionError(f"{conversation_id} unreachable")
        message_id = f"m{len(self.sent) + 1}"
        self.sent.append(SentMessage(conversation_id, text, tuple(options or ()), message_id))
        self._answer(conversation_id, message_id)
        return message_id

    async def send_media(self, conversation_id, media, *, caption=None, options=None) -> str:
        return await self.send_text(conversation_id, caption or media, options=options)

    async def acknowledge_selection(self, selection_id: str) -> None:
        self.acknowledged.append(selection_id)

    async def clear_affordances(self, conversation_id: str, message_id: str) -> None:
        self.cleared.append((conversation_id, message_id))

    def _answer(self, conversation_id: str, message_id: str) -> None:
        queue = self.replies.get(conversation_id)
        if not queue:
            return
        reply = queue[0]
        loop = asyncio.get_running_loop()
        if isinstance(reply, Pick) and self.hub.is_waiting_for_selection(conversation_id):
            queue.popleft()
            selection = Selection(
                id=f"s-{message_id}",
                conversation_id=conversation_id,
                option_id=reply.option_id,
                message_id=message_id,
            )
            loop.call_soon(self.hub.deliver_selection, selection)
        elif isinstance(reply, str) and self.hub.is_waiting_for_turn(conversation_id):
            queue.popleft()
            loop.call_soon(self.hub.deliver_turn, Turn(conversation_id=conversation_id, text=reply))


@dataclass
class FakeGateway:
    verification_statuses: deque = field(default_factory=lambda: deque(["success"]))
    deposit_status: str = "success"
    deposit_amount: Optional[Decimal] = None
    checkout_error: Optional[GatewayError] = None
    withdrawal_error: Optional[GatewayError] = None
    deposit_calls: list = field(default_factory=list)
    withdrawal_calls: list = field(default_factory=list)
    verify_calls: list = field(default_factory=list)

    async def initialize_deposit(self, amount, payer_name, payer_phone) -> CheckoutHandle:
        self.deposit_calls.append((amount, payer_name, payer_phone))
        if self.checkout_error:
            raise self.checkout_error
        reference = f"dep-{len(self.deposit_calls)}"
        return CheckoutHandle(reference=reference, checkout_url=f"https://checkout.test/{reference}")

    async def initiate_withdrawal(self, amount, account_name, account_number, method_id) -> WithdrawalAccepted:
        self.withdrawal_calls.append((amount, account_name, account_number, method_id))
        if self.withdrawal_error:
            raise self.withdrawal_error
        return WithdrawalAccepted(reference=f"wd-{len(self.withdrawal_calls)}", message="Transfer queued")

    async def verify_withdrawal(self, reference) -> VerificationResult:
        self.verify_calls.append(reference)
        status = self.verification_statuses.popleft() if len(self.verification_statuses) > 1 else self.verification_statuses[0]
        return VerificationResult(reference=reference, status=status, bank_name="telebirr")

    async def verify_deposit(self, reference) -> DepositVerification:
        self.verify_calls.append(reference)
        return DepositVerification(reference=reference, status=self.deposit_status, amount=self.deposit_amount)


class RecordingAlertSink:
    def __init__(self) -> None:
        self.alerts: list[tuple[str, dict]] = []

    async def escalate(self, summary: str, **context: Any) -> None:
        self.alerts.append((summary, context))
