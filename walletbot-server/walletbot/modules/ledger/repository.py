"""Repository protocol for the balance ledger."""

from __future__ import annotations

from typing import Protocol, Sequence

from walletbot.db.models import LedgerTransaction as LedgerTransactionModel, Party as PartyModel


class LedgerRepository(Protocol):
    async def get_party(self, conversation_id: str) -> PartyModel | None:
        ...

    async def get_party_by_phone(self, phone_number: str) -> PartyModel | None:
        ...

    async def create_party(self, conversation_id: str, handle: str | None, phone_number: str) -> PartyModel:
        ...

    async def update_balance(self, conversation_id: str, delta_cents: int) -> PartyModel | None:
        ...

    async def debit(self, conversation_id: str, amount_cents: int) -> PartyModel | None:
        ...

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
    ) -> LedgerTransactionModel:
        ...

    async def get_transaction(self, reference: str) -> LedgerTransactionModel | None:
        ...

    async def update_transaction_status(self, reference: str, status: str) -> LedgerTransactionModel | None:
        ...

    async def list_transactions(
        self, conversation_id: str, limit: int, offset: int
    ) -> Sequence[LedgerTransactionModel]:
        ...
