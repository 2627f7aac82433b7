"""Dispatches user actions to flows, one running flow per conversation."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Type

from walletbot.core.exceptions import FlowError
from walletbot.modules.alerts import AlertSink
from walletbot.modules.gateway import GatewayError
from walletbot.modules.ledger import LedgerWriteError

from .account import BalanceFlow, HistoryFlow, RegistrationFlow
from .base import Flow, FlowContext, FlowOutcome, FlowRequest
from .deposit import DepositFlow
from .exceptions import FlowBusyError
from .transfer import TransferFlow
from .withdrawal import WithdrawalFlow

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."

DEFAULT_FLOWS: Dict[str, Type[Flow]] = {
    flow.name: flow
    for flow in (RegistrationFlow, DepositFlow, WithdrawalFlow, TransferFlow, BalanceFlow, HistoryFlow)
}


class FlowRunner:
    def __init__(
        self,
        context: FlowContext,
        alerts: AlertSink,
        flows: Optional[Dict[str, Type[Flow]]] = None,
    ) -> None:
        self.context = context
        self.alerts = alerts
        self.flows = dict(flows or DEFAULT_FLOWS)
        self._running: Dict[str, asyncio.Task] = {}

    @property
    def actions(self) -> list[str]:
        return sorted(self.flows)

    def is_running(self, conversation_id: str) -> bool:
        task = self._running.get(conversation_id)
        return task is not None and not task.done()

    async def start(self, action: str, request: FlowRequest) -> Optional["asyncio.Task[FlowOutcome]"]:
        """Schedule ``action`` for the conversation; ``None`` if it was refused."""
        if action not in self.flows:
            raise KeyError(f"unknown action {action!r}")
        if self.is_running(request.conversation_id):
            error = FlowBusyError(f"{request.conversation_id} already runs a flow")
            logger.info("Refused %s for %s: %s", action, request.conversation_id, error)
            await self.context.transport.send_text(request.conversation_id, error.user_message)
            return None

        task = asyncio.create_task(self.execute(action, request), name=f"flow-{action}-{request.conversation_id}")
        self._running[request.conversation_id] = task
        task.add_done_callback(lambda done, cid=request.conversation_id: self._forget(cid, done))
        return task

    async def execute(self, action: str, request: FlowRequest) -> FlowOutcome:
        flow = self.flows[action](self.context)
        try:
            return await flow.run(request)
        except FlowError as e:
            await self._report(flow, request, e)
            return FlowOutcome(
                flow=flow.name,
                conversation_id=request.conversation_id,
                succeeded=False,
                reference=getattr(e, "reference", None),
                error_code=e.code,
                message=e.user_message,
            )
        except Exception:  # pylint: disable=broad-except
            logger.exception("Flow %s crashed for %s", flow.name, request.conversation_id)
            await self._send(request.conversation_id, UNEXPECTED_ERROR_MESSAGE)
            return FlowOutcome(
                flow=flow.name,
                conversation_id=request.conversation_id,
                succeeded=False,
                error_code="unexpected",
                message=UNEXPECTED_ERROR_MESSAGE,
            )

    async def shutdown(self) -> None:
        tasks = [task for task in self._running.values() if not task.done()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._running.clear()

    async def _report(self, flow: Flow, request: FlowRequest, error: FlowError) -> None:
        reference = getattr(error, "reference", None)
        if isinstance(error, LedgerWriteError):
            logger.error("Ledger write failed in %s for %s (ref=%s): %s", flow.name, request.conversation_id, reference, error)
            summary = "ledger write failed after gateway settlement" if error.settled else "ledger write failed"
            await self.alerts.escalate(
                summary,
                flow=flow.name,
                conversation_id=request.conversation_id,
                reference=reference,
                settled=error.settled,
                error=error,
            )
        elif isinstance(error, GatewayError):
            logger.error(
                "Gateway error in %s for %s (ref=%s): %s",
                flow.name,
                request.conversation_id,
                reference,
                error.reason or error.cause or error,
            )
        else:
            logger.info("Flow %s stopped for %s: [%s] %s", flow.name, request.conversation_id, error.code, error)
        await self._send(request.conversation_id, error.user_message)

    async def _send(self, conversation_id: str, text: str) -> None:
        try:
            await self.context.transport.send_text(conversation_id, text)
        except Exception as e:  # pylint: disable=broad-except
            logger.error("Could not deliver error message to %s: %s", conversation_id, e)

    def _forget(self, conversation_id: str, task: asyncio.Task) -> None:
        if self._running.get(conversation_id) is task:
            del self._running[conversation_id]
