"""Flow orchestrator exports"""

from .account import BalanceFlow, HistoryFlow, RegistrationFlow
from .base import Flow, FlowContext, FlowOutcome, FlowRequest
from .deposit import DepositFlow
from .exceptions import (
    FlowBusyError,
    IncompleteProfileError,
    NotRegisteredError,
    RecipientNotFoundError,
    SelfTransferError,
    WithdrawalNotSettledError,
)
from .runner import DEFAULT_FLOWS, FlowRunner
from .transfer import TransferFlow
from .withdrawal import WithdrawalFlow

__all__ = [
    "BalanceFlow",
    "HistoryFlow",
    "RegistrationFlow",
    "Flow",
    "FlowContext",
    "FlowOutcome",
    "FlowRequest",
    "DepositFlow",
    "FlowBusyError",
    "IncompleteProfileError",
    "NotRegisteredError",
    "RecipientNotFoundError",
    "SelfTransferError",
    "WithdrawalNotSettledError",
    "DEFAULT_FLOWS",
    "FlowRunner",
    "TransferFlow",
    "WithdrawalFlow",
]
