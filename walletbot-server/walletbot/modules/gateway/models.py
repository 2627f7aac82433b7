"""Typed outcomes returned by the payment gateway client."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

SUCCESS_STATES = frozenset({"success", "successful", "completed", "settled"})
FAILURE_STATES = frozenset({"failed", "failure", "rejected", "reversed", "reverted", "cancelled"})


@dataclass(slots=True)
class CheckoutHandle:
    reference: str
    checkout_url: str


@dataclass(slots=True)
class WithdrawalAccepted:
    reference: str
    message: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class VerificationResult:
    reference: str
    status: str
    bank_name: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status.lower() in SUCCESS_STATES

    @property
    def failed(self) -> bool:
        return self.status.lower() in FAILURE_STATES

    @property
    def is_terminal(self) -> bool:
        return self.succeeded or self.failed


@dataclass(slots=True)
class DepositVerification:
    reference: str
    status: str
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status.lower() in SUCCESS_STATES

    @property
    def failed(self) -> bool:
        return self.status.lower() in FAILURE_STATES
