"""Domain models for deposit orders."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from walletbot.modules.ledger.models import Party, TransactionRecord


@dataclass(slots=True)
class DepositOrder:
    id: str
    reference: str
    conversation_id: str
    amount: Decimal
    currency: str
    status: str
    checkout_url: Optional[str]
    created_at: Optional[datetime]
    confirmed_at: Optional[datetime]


@dataclass(slots=True)
class DepositConfirmation:
    order: DepositOrder
    applied: bool
    party: Optional[Party] = None
    record: Optional[TransactionRecord] = None
