"""Repository interface for deposit orders."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from walletbot.db.models import DepositOrder as DepositOrderModel


class DepositOrderRepository(Protocol):
    async def create(
        self,
        *,
        reference: str,
        conversation_id: str,
        amount_cents: int,
        currency: str,
        checkout_url: str | None,
    ) -> DepositOrderModel:
        ...

    async def claim_pending(
        self,
        reference: str,
        *,
        status: str,
        confirmed_at: datetime,
    ) -> DepositOrderModel | None:
        ...

    async def get_by_reference(self, reference: str, *, refresh: bool = False) -> DepositOrderModel | None:
        ...

    async def list_orders(
        self, conversation_id: str, limit: int, offset: int, status: str | None = None
    ) -> Sequence[DepositOrderModel]:
        ...
