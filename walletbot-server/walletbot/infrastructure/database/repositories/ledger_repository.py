"""SQLAlchemy implementation for the ledger domain"""

from __future__ import annotations

from sqlalchemy import desc, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from walletbot.db.models import LedgerTransaction, Party


class SqlLedgerRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_party(self, conversation_id: str) -> Party | None:
        return await self.session.get(Party, conversation_id, populate_existing=True)

    async def get_party_by_phone(self, phone_number: str) -> Party | None:
        stmt = select(Party).where(Party.phone_number == phone_number)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create_party(self, conversation_id: str, handle: str | None, phone_number: str) -> Party:
        party = Party(
            conversation_id=conversation_id,
            handle=handle,
            phone_number=phone_number,
            balance_cents=0,
        )
        self.session.add(party)
        await self.session.flush()
        await self.session.refresh(party)
        return party

    async def update_balance(self, conversation_id: str, delta_cents: int) -> Party | None:
        stmt = (
            update(Party)
            .where(Party.conversation_id == conversation_id)
            .values(balance_cents=Party.balance_cents + delta_cents)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self.get_party(conversation_id)

    async def debit(self, conversation_id: str, amount_cents: int) -> Party | None:
        """Conditional debit; returns ``None`` when the balance does not cover it."""
        stmt = (
            update(Party)
            .where(Party.conversation_id == conversation_id)
            .where(Party.balance_cents >= amount_cents)
            .values(balance_cents=Party.balance_cents - amount_cents)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            return None
        return await self.get_party(conversation_id)

    async def add_transaction(
        self,
        *,
        reference: str,
        conversation_id: str,
        counterparty_id: str | None,
        amount_cents: int,
        currency: str,
        status: str,
        kind: str,
        details: str | None,
    ) -> LedgerTransaction:
        tx = LedgerTransaction(
            reference=reference,
            conversation_id=conversation_id,
            counterparty_id=counterparty_id,
            amount_cents=amount_cents,
            currency=currency,
            status=status,
            kind=kind,
            details=details,
        )
        self.session.add(tx)
        await self.session.flush()
        await self.session.refresh(tx)
        return tx

    async def get_transaction(self, reference: str) -> LedgerTransaction | None:
        stmt = select(LedgerTransaction).where(LedgerTransaction.reference == reference)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def update_transaction_status(self, reference: str, status: str) -> LedgerTransaction | None:
        tx = await self.get_transaction(reference)
        if tx is None:
            return None
        tx.status = status
        await self.session.flush()
        await self.session.refresh(tx)
        return tx

    async def list_transactions(self, conversation_id: str, limit: int, offset: int) -> list[LedgerTransaction]:
        stmt = (
            select(LedgerTransaction)
            .where(
                or_(
                    LedgerTransaction.conversation_id == conversation_id,
                    LedgerTransaction.counterparty_id == conversation_id,
                )
            )
            .order_by(desc(LedgerTransaction.created_at), desc(LedgerTransaction.id))
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
