"""Domain models for parties and ledger records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Optional

CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> int:
    return int((amount / CENT).to_integral_value(rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) * CENT).quantize(CENT)


class TransactionKind(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    COMPLETED = "completed"


@dataclass(slots=True)
class Party:
    conversation_id: str
    handle: Optional[str]
    phone_number: Optional[str]
    balance: Decimal
    created_at: Optional[datetime] = None

    @property
    def has_complete_profile(self) -> bool:
        return bool(self.handle) and bool(self.phone_number)


@dataclass(slots=True)
class NewTransactionRecord:
    reference: str
    conversation_id: str
    amount: Decimal
    kind: TransactionKind
    status: TransactionStatus
    currency: str = "ETB"
    counterparty_id: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class TransactionRecord:
    id: str
    reference: str
    conversation_id: str
    counterparty_id: Optional[str]
    amount: Decimal
    currency: str
    status: TransactionStatus
    kind: TransactionKind
    details: dict[str, Any]
    created_at: Optional[datetime]


@dataclass(slots=True)
class TransferSettlement:
    sender: Party
    recipient: Party
    record: TransactionRecord


@dataclass(slots=True)
class WithdrawalSettlement:
    party: Party
    record: TransactionRecord
