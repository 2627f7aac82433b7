"""SQLAlchemy implementation for deposit order repository"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from walletbot.db.models import DepositOrder


class SqlDepositOrderRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(
        self,
        *,
        reference: str,
        conversation_id: str,
        amount_cents: int,
        currency: str,
        checkout_url: str | None,
    ) -> DepositOrder:
        order = DepositOrder(
            reference=reference,
            conversation_id=conversation_id,
            amount_cents=amount_cents,
            currency=currency,
            checkout_url=checkout_url,
        )
        self.session.add(order)
        await self.session.flush()
        await self.session.refresh(order)
        return order

    async def claim_pending(
        self,
        reference: str,
        *,
        status: str,
        confirmed_at: datetime,
    ) -> DepositOrder | None:
        """Move a pending order to ``status``; ``None`` if it was not pending."""
        stmt = (
            update(DepositOrder)
            .where(DepositOrder.reference == reference)
            .where(DepositOrder.status == "pending")
            .values(status=status, confirmed_at=confirmed_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self.get_by_reference(reference, refresh=True)

    async def get_by_reference(self, reference: str, *, refresh: bool = False) -> DepositOrder | None:
        stmt = select(DepositOrder).where(DepositOrder.reference == reference)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_orders(
        self,
        conversation_id: str,
        limit: int,
        offset: int,
        status: str | None = None,
    ) -> Sequence[DepositOrder]:
        stmt = select(DepositOrder).where(DepositOrder.conversation_id == conversation_id)
        if status and status != "all":
            stmt = stmt.where(DepositOrder.status == status)
        stmt = stmt.order_by(desc(DepositOrder.created_at)).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()
