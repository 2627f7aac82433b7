"""Pydantic schemas used across the project."""
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class WSText(BaseModel):
    type: Literal["text"] = "text"
    text: str = Field(..., max_length=4096)
    handle: Optional[str] = None


class WSSelection(BaseModel):
    type: Literal["selection"] = "selection"
    id: str = Field(..., min_length=1, max_length=64)
    option_id: str = Field(..., min_length=1, max_length=64)
    message_id: Optional[str] = None


class WSHeartbeat(BaseModel):
    type: Literal["heartbeat"] = "heartbeat"


class DepositCallback(BaseModel):
    """Gateway callback body; the reference arrives under different keys."""

    model_config = ConfigDict(extra="allow")

    trx_ref: Optional[str] = None
    tx_ref: Optional[str] = None
    reference: Optional[str] = None
    status: Optional[str] = None

    @property
    def resolved_reference(self) -> Optional[str]:
        return self.trx_ref or self.tx_ref or self.reference


class DepositConfirmationResponse(BaseModel):
    reference: str
    status: str
    applied: bool
    balance: Optional[Decimal] = None


class DepositOrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reference: str
    amount: Decimal
    currency: str
    status: str
    checkout_url: Optional[str] = None
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None


class PartyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    conversation_id: str
    handle: Optional[str] = None
    phone_number: Optional[str] = None
    balance: Decimal


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reference: str
    counterparty_id: Optional[str] = None
    amount: Decimal
    currency: str
    status: str
    kind: str
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class TransactionListResponse(BaseModel):
    transactions: list[TransactionResponse] = Field(default_factory=list)


class DepositOrderListResponse(BaseModel):
    orders: list[DepositOrderResponse] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    connections: int = 0
