"""Ledger domain exports"""

from .exceptions import (
    AlreadyRegisteredError,
    InsufficientBalanceError,
    LedgerError,
    LedgerWriteError,
    PartyNotFoundError,
    PhoneInUseError,
)
from .models import (
    NewTransactionRecord,
    Party,
    TransactionKind,
    TransactionRecord,
    TransactionStatus,
    TransferSettlement,
    WithdrawalSettlement,
    from_cents,
    to_cents,
)
from .service import LedgerService, PartyLocks, party_from_model, record_from_model

__all__ = [
    "AlreadyRegisteredError",
    "InsufficientBalanceError",
    "LedgerError",
    "LedgerWriteError",
    "PartyNotFoundError",
    "PhoneInUseError",
    "NewTransactionRecord",
    "Party",
    "TransactionKind",
    "TransactionRecord",
    "TransactionStatus",
    "TransferSettlement",
    "WithdrawalSettlement",
    "from_cents",
    "to_cents",
    "LedgerService",
    "PartyLocks",
    "party_from_model",
    "record_from_model",
]
