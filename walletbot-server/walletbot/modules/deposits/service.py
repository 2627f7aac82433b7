"""Deposit order service: issued checkouts and their asynchronous confirmation."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from walletbot.db.models import DepositOrder as DepositOrderModel
from walletbot.infrastructure.database.repositories.deposit_order_repository import SqlDepositOrderRepository
from walletbot.infrastructure.database.repositories.ledger_repository import SqlLedgerRepository
from walletbot.modules.gateway import PaymentGateway
from walletbot.modules.ledger import (
    party_from_model,
    record_from_model,
    LedgerWriteError,
    TransactionKind,
    TransactionStatus,
    from_cents,
    to_cents,
)

from .exceptions import DepositOrderNotFoundError
from .models import DepositConfirmation, DepositOrder
from .repository import DepositOrderRepository

logger = logging.getLogger(__name__)


class DepositOrderService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        gateway: PaymentGateway,
        *,
        currency: str = "ETB",
    ) -> None:
        self._session_factory = session_factory
        self._gateway = gateway
        self._currency = currency

    async def create_order(
        self,
        *,
        conversation_id: str,
        reference: str,
        amount: Decimal,
        checkout_url: str | None,
    ) -> DepositOrder:
        async with self._session_factory() as session, session.begin():
            order = await self._orders(session).create(
                reference=reference,
                conversation_id=conversation_id,
                amount_cents=to_cents(amount),
                currency=self._currency,
                checkout_url=checkout_url,
            )
            return self._to_domain(order)

    async def get_order(self, reference: str) -> DepositOrder | None:
        async with self._session_factory() as session:
            order = await self._orders(session).get_by_reference(reference)
            return self._to_domain(order) if order else None

    async def list_orders(self, conversation_id: str, limit: int = 20, offset: int = 0) -> list[DepositOrder]:
        async with self._session_factory() as session:
            rows = await self._orders(session).list_orders(conversation_id, limit, offset)
            return [self._to_domain(row) for row in rows]

    async def confirm(self, reference: str) -> DepositConfirmation:
        """Verify ``reference`` with the gateway and credit the party once.

        Repeated calls for an order that already left ``pending`` return with
        ``applied=False`` and change nothing.
        """
        order = await self.get_order(reference)
        if order is None:
            raise DepositOrderNotFoundError(reference)
        if order.status != "pending":
            logger.info("Deposit %s already %s", reference, order.status)
            return DepositConfirmation(order=order, applied=False)

        verification = await self._gateway.verify_deposit(reference)
        if verification.failed:
            return await self._mark_failed(order)
        if not verification.succeeded:
            logger.info("Deposit %s still %s at the gateway", reference, verification.status)
            return DepositConfirmation(order=order, applied=False)

        amount = order.amount
        if verification.amount is not None and verification.amount != order.amount:
            logger.warning(
                "Deposit %s verified for %s but was issued for %s; crediting the verified amount",
                reference,
                verification.amount,
                order.amount,
            )
            amount = verification.amount
        return await self._credit(order, amount)

    async def _credit(self, order: DepositOrder, amount: Decimal) -> DepositConfirmation:
        try:
            async with self._session_factory() as session, session.begin():
                orders = self._orders(session)
                ledger = SqlLedgerRepository(session)
                claimed = await orders.claim_pending(
                    order.reference,
                    status="success",
                    confirmed_at=datetime.now(timezone.utc),
                )
                if claimed is None:
                    current = await orders.get_by_reference(order.reference, refresh=True)
                    return DepositConfirmation(order=self._to_domain(current), applied=False)
                party = await ledger.update_balance(order.conversation_id, to_cents(amount))
                if party is None:
                    raise LedgerWriteError(
                        f"party {order.conversation_id} vanished before deposit {order.reference}",
                        reference=order.reference,
                        settled=True,
                    )
                record = await ledger.add_transaction(
                    reference=order.reference,
                    conversation_id=order.conversation_id,
                    counterparty_id=None,
                    amount_cents=to_cents(amount),
                    currency=order.currency,
                    status=TransactionStatus.SUCCESS.value,
                    kind=TransactionKind.DEPOSIT.value,
                    details=None,
                )
                confirmation = DepositConfirmation(
                    order=self._to_domain(claimed),
                    applied=True,
                    party=party_from_model(party),
                    record=record_from_model(record),
                )
        except SQLAlchemyError as exc:
            raise LedgerWriteError(str(exc), reference=order.reference, settled=True) from exc
        logger.info("Deposit %s credited %s to %s", order.reference, amount, order.conversation_id)
        return confirmation

    async def _mark_failed(self, order: DepositOrder) -> DepositConfirmation:
        async with self._session_factory() as session, session.begin():
            orders = self._orders(session)
            claimed = await orders.claim_pending(
                order.reference,
                status="failed",
                confirmed_at=datetime.now(timezone.utc),
            )
            current = claimed or await orders.get_by_reference(order.reference, refresh=True)
            logger.info("Deposit %s failed at the gateway", order.reference)
            return DepositConfirmation(order=self._to_domain(current), applied=False)

    @staticmethod
    def _orders(session: AsyncSession) -> DepositOrderRepository:
        return SqlDepositOrderRepository(session)

    @staticmethod
    def _to_domain(model: DepositOrderModel) -> DepositOrder:
        return DepositOrder(
            id=model.id,
            reference=model.reference,
            conversation_id=model.conversation_id,
            amount=from_cents(model.amount_cents),
            currency=model.currency,
            status=model.status,
            checkout_url=model.checkout_url,
            created_at=model.created_at,
            confirmed_at=model.confirmed_at,
        )
