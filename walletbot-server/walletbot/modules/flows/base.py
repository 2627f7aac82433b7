"""Common orchestrator contract shared by every money flow."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, ClassVar, Generic, Optional, TypeVar

from walletbot.core.config import Settings
from walletbot.modules.conversation import ChoiceCollector, ConversationTransport, InputCollector
from walletbot.modules.gateway import PaymentGateway
from walletbot.modules.ledger import LedgerService, Party

from .exceptions import NotRegisteredError

if TYPE_CHECKING:
    from walletbot.modules.deposits import DepositOrderService

logger = logging.getLogger(__name__)

PlanT = TypeVar("PlanT")
ResultT = TypeVar("ResultT")


@dataclass(slots=True)
class FlowContext:
    """Capabilities a flow may use: collect, call the gateway, settle."""

    settings: Settings
    transport: ConversationTransport
    inputs: InputCollector
    choices: ChoiceCollector
    gateway: PaymentGateway
    ledger: LedgerService
    deposits: "DepositOrderService"


@dataclass(slots=True)
class FlowRequest:
    conversation_id: str
    handle: Optional[str] = None


@dataclass(slots=True)
class FlowOutcome:
    flow: str
    conversation_id: str
    succeeded: bool
    reference: Optional[str] = None
    error_code: Optional[str] = None
    message: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)


class Flow(ABC, Generic[PlanT, ResultT]):
    """One user-initiated action.

    ``run`` drives ``authorize -> collect -> execute -> settle``. Any step may
    raise :class:`~walletbot.core.exceptions.FlowError` to stop the flow.
    """

    name: ClassVar[str]
    not_registered_message: ClassVar[str] = "Please register first. /register"

    def __init__(self, context: FlowContext) -> None:
        self.context = context

    @property
    def currency(self) -> str:
        return self.context.settings.currency

    def format_amount(self, amount: Decimal) -> str:
        return f"{amount.normalize():f} {self.currency}"

    async def say(self, conversation_id: str, text: str, **kwargs) -> str:
        return await self.context.transport.send_text(conversation_id, text, **kwargs)

    async def run(self, request: FlowRequest) -> FlowOutcome:
        party = await self.authorize(request)
        plan = await self.collect(request, party)
        result = await self.execute(request, plan)
        outcome = await self.settle(request, plan, result)
        logger.info("Flow %s finished for %s (ref=%s)", self.name, request.conversation_id, outcome.reference)
        return outcome

    async def authorize(self, request: FlowRequest) -> Optional[Party]:
        """Default precondition: the conversation belongs to a registered party."""
        party = await self.context.ledger.get_party(request.conversation_id)
        if party is None:
            raise NotRegisteredError(
                f"conversation {request.conversation_id} is not registered",
                user_message=self.not_registered_message,
            )
        return party

    @abstractmethod
    async def collect(self, request: FlowRequest, party: Optional[Party]) -> PlanT:
        ...

    async def execute(self, request: FlowRequest, plan: PlanT) -> Optional[ResultT]:
        return None

    @abstractmethod
    async def settle(self, request: FlowRequest, plan: PlanT, result: Optional[ResultT]) -> FlowOutcome:
        ...

    def completed(self, request: FlowRequest, **kwargs) -> FlowOutcome:
        return FlowOutcome(flow=self.name, conversation_id=request.conversation_id, succeeded=True, **kwargs)

