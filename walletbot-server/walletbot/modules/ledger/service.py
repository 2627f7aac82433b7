"""Ledger domain service: balances, records and atomic settlements."""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, AsyncIterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from walletbot.db.models import LedgerTransaction as LedgerTransactionModel, Party as PartyModel
from walletbot.infrastructure.database.repositories.ledger_repository import SqlLedgerRepository

from .exceptions import (
    AlreadyRegisteredError,
    InsufficientBalanceError,
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
from .repository import LedgerRepository

logger = logging.getLogger(__name__)


class PartyLocks:
    """Per-party asyncio locks, always taken in sorted identity order."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def is_held(self, conversation_id: str) -> bool:
        lock = self._locks.get(conversation_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, *conversation_ids: str) -> AsyncIterator[None]:
        registered: list[str] = []
        acquired: list[str] = []
        try:
            for conversation_id in sorted(set(conversation_ids)):
                lock = self._locks.setdefault(conversation_id, asyncio.Lock())
                self._users[conversation_id] = self._users.get(conversation_id, 0) + 1
                registered.append(conversation_id)
                await lock.acquire()
                acquired.append(conversation_id)
            yield
        finally:
            for conversation_id in reversed(registered):
                if conversation_id in acquired:
                    self._locks[conversation_id].release()
                self._users[conversation_id] -= 1
                if self._users[conversation_id] == 0:
                    del self._users[conversation_id]
                    del self._locks[conversation_id]


class LedgerService:
    """Reads and mutates party balances.

    Every public call runs in its own database transaction. The ``settle_*``
    methods apply the balance change and the record append together, so a
    failure leaves neither behind.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        currency: str = "ETB",
        locks: PartyLocks | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._currency = currency
        self._locks = locks or PartyLocks()

    @property
    def currency(self) -> str:
        return self._currency

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[LedgerRepository]:
        async with self._session_factory() as session:
            try:
                yield SqlLedgerRepository(session)
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    def hold(self, *conversation_ids: str):
        """Serialise balance-changing work for the given parties."""
        return self._locks.hold(*conversation_ids)

    async def get_party(self, conversation_id: str) -> Party | None:
        async with self.unit_of_work() as repo:
            model = await repo.get_party(conversation_id)
            return self._to_party(model) if model else None

    async def find_party(self, conversation_id: str) -> Party:
        party = await self.get_party(conversation_id)
        if party is None:
            raise PartyNotFoundError(f"no party for conversation {conversation_id}")
        return party

    async def find_party_by_phone(self, phone_number: str) -> Party | None:
        async with self.unit_of_work() as repo:
            model = await repo.get_party_by_phone(phone_number)
            return self._to_party(model) if model else None

    async def register_party(self, conversation_id: str, handle: str | None, phone_number: str) -> Party:
        try:
            async with self.unit_of_work() as repo:
                if await repo.get_party(conversation_id) is not None:
                    raise AlreadyRegisteredError(conversation_id)
                if await repo.get_party_by_phone(phone_number) is not None:
                    raise PhoneInUseError(phone_number)
                model = await repo.create_party(conversation_id, handle, phone_number)
                party = self._to_party(model)
        except IntegrityError as exc:
            raise PhoneInUseError(phone_number) from exc
        logger.info("Registered party %s (%s)", conversation_id, handle)
        return party

    async def adjust_balance(self, conversation_id: str, delta: Decimal) -> Party:
        """Apply ``delta`` unconditionally; callers check ``sufficient_balance`` first."""
        async with self.unit_of_work() as repo:
            model = await repo.update_balance(conversation_id, to_cents(delta))
            if model is None:
                raise PartyNotFoundError(conversation_id)
            return self._to_party(model)

    async def sufficient_balance(self, conversation_id: str, amount: Decimal) -> bool:
        party = await self.find_party(conversation_id)
        return to_cents(party.balance) >= to_cents(amount)

    async def append_record(self, record: NewTransactionRecord) -> TransactionRecord:
        try:
            async with self.unit_of_work() as repo:
                model = await self._add_record(repo, record)
                return self._to_record(model)
        except SQLAlchemyError as exc:
            raise LedgerWriteError(str(exc), reference=record.reference) from exc

    async def set_record_status(self, reference: str, status: TransactionStatus) -> TransactionRecord | None:
        async with self.unit_of_work() as repo:
            model = await repo.update_transaction_status(reference, status.value)
            return self._to_record(model) if model else None

    async def get_record(self, reference: str) -> TransactionRecord | None:
        async with self.unit_of_work() as repo:
            model = await repo.get_transaction(reference)
            return self._to_record(model) if model else None

    async def list_records(self, conversation_id: str, limit: int = 10, offset: int = 0) -> list[TransactionRecord]:
        async with self.unit_of_work() as repo:
            rows = await repo.list_transactions(conversation_id, limit, offset)
            return [self._to_record(row) for row in rows]

    async def settle_transfer(
        self,
        *,
        sender_id: str,
        recipient_id: str,
        amount: Decimal,
        reference: str,
    ) -> TransferSettlement:
        """Debit the sender, credit the recipient and append the record in one transaction."""
        amount_cents = to_cents(amount)
        try:
            async with self.unit_of_work() as repo:
                await self._add_record(
                    repo,
                    NewTransactionRecord(
                        reference=reference,
                        conversation_id=sender_id,
                        counterparty_id=recipient_id,
                        amount=amount,
                        kind=TransactionKind.TRANSFER,
                        status=TransactionStatus.COMPLETED,
                        currency=self._currency,
                    ),
                )
                sender = await repo.debit(sender_id, amount_cents)
                if sender is None:
                    raise InsufficientBalanceError(f"transfer {reference} exceeds balance of {sender_id}")
                recipient = await repo.update_balance(recipient_id, amount_cents)
                if recipient is None:
                    raise PartyNotFoundError(recipient_id)
                record = await repo.get_transaction(reference)
                settlement = TransferSettlement(
                    sender=self._to_party(sender),
                    recipient=self._to_party(recipient),
                    record=self._to_record(record),
                )
        except SQLAlchemyError as exc:
            raise LedgerWriteError(str(exc), reference=reference) from exc
        logger.info("Transfer %s settled: %s -> %s amount=%s", reference, sender_id, recipient_id, amount)
        return settlement

    async def settle_withdrawal(
        self,
        *,
        conversation_id: str,
        amount: Decimal,
        reference: str,
        status: TransactionStatus,
        details: dict[str, Any],
    ) -> WithdrawalSettlement:
        """Debit a withdrawal the gateway already settled.

        Money has left through the gateway at this point, so any failure is
        reported as :class:`LedgerWriteError`.
        """
        try:
            async with self.unit_of_work() as repo:
                party = await repo.debit(conversation_id, to_cents(amount))
                if party is None:
                    raise LedgerWriteError(
                        f"balance of {conversation_id} no longer covers withdrawal {reference}",
                        reference=reference,
                        settled=True,
                    )
                model = await self._add_record(
                    repo,
                    NewTransactionRecord(
                        reference=reference,
                        conversation_id=conversation_id,
                        amount=amount,
                        kind=TransactionKind.WITHDRAWAL,
                        status=status,
                        currency=self._currency,
                        details=details,
                    ),
                )
                settlement = WithdrawalSettlement(party=self._to_party(party), record=self._to_record(model))
        except SQLAlchemyError as exc:
            raise LedgerWriteError(str(exc), reference=reference, settled=True) from exc
        logger.info("Withdrawal %s settled for %s amount=%s", reference, conversation_id, amount)
        return settlement

    async def _add_record(self, repo: LedgerRepository, record: NewTransactionRecord) -> LedgerTransactionModel:
        return await repo.add_transaction(
            reference=record.reference,
            conversation_id=record.conversation_id,
            counterparty_id=record.counterparty_id,
            amount_cents=to_cents(record.amount),
            currency=record.currency,
            status=record.status.value,
            kind=record.kind.value,
            details=json.dumps(record.details, ensure_ascii=False) if record.details else None,
        )

    @staticmethod
    def _to_party(model: PartyModel) -> Party:
        return party_from_model(model)

    @staticmethod
    def _to_record(model: LedgerTransactionModel) -> TransactionRecord:
        return record_from_model(model)


def party_from_model(model: PartyModel) -> Party:
    return Party(
        conversation_id=model.conversation_id,
        handle=model.handle,
        phone_number=model.phone_number,
        balance=from_cents(model.balance_cents),
        created_at=model.created_at,
    )


def record_from_model(model: LedgerTransactionModel) -> TransactionRecord:
    return TransactionRecord(
        id=model.id,
        reference=model.reference,
        conversation_id=model.conversation_id,
        counterparty_id=model.counterparty_id,
        amount=from_cents(model.amount_cents),
        currency=model.currency,
        status=TransactionStatus(model.status),
        kind=TransactionKind(model.kind),
        details=json.loads(model.details) if model.details else {},
        created_at=model.created_at,
    )
