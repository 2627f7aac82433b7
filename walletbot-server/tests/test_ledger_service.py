"""Tests for the ledger service"""
import asyncio
from decimal import Decimal

import pytest

from walletbot.modules.ledger import (
    AlreadyRegisteredError,
    InsufficientBalanceError,
    LedgerWriteError,
    NewTransactionRecord,
    PartyLocks,
    PartyNotFoundError,
    PhoneInUseError,
    TransactionKind,
    TransactionStatus,
    from_cents,
    to_cents,
)


def test_cent_conversion():
    assert to_cents(Decimal("25.50")) == 2550
    assert to_cents(Decimal("0.005")) == 1
    assert from_cents(2550) == Decimal("25.50")


@pytest.mark.asyncio
async def test_register_party_starts_at_zero(ledger):
    party = await ledger.register_party("c1", "abebe", "0911111111")

    assert party.balance == Decimal("0")
    assert party.has_complete_profile
    assert (await ledger.find_party_by_phone("0911111111")).conversation_id == "c1"


@pytest.mark.asyncio
async def test_register_party_rejects_duplicates(ledger):
    await ledger.register_party("c1", "abebe", "0911111111")

    with pytest.raises(AlreadyRegisteredError):
        await ledger.register_party("c1", "abebe", "0922222222")
    with pytest.raises(PhoneInUseError):
        await ledger.register_party("c2", "kebede", "0911111111")


@pytest.mark.asyncio
async def test_find_party_raises_for_unknown(ledger):
    with pytest.raises(PartyNotFoundError):
        await ledger.find_party("missing")
    assert await ledger.get_party("missing") is None


@pytest.mark.asyncio
async def test_settle_transfer_moves_exact_amount(ledger, seed_party):
    await seed_party("a", "0911111111", "100")
    await seed_party("b", "0922222222", "5")

    settlement = await ledger.settle_transfer(sender_id="a", recipient_id="b", amount=Decimal("30"), reference="TR1")

    assert settlement.sender.balance == Decimal("70")
    assert settlement.recipient.balance == Decimal("35")
    assert settlement.record.status is TransactionStatus.COMPLETED
    assert settlement.record.kind is TransactionKind.TRANSFER
    assert settlement.record.counterparty_id == "b"
    assert [record.reference for record in await ledger.list_records("a")] == ["TR1"]
    assert [record.reference for record in await ledger.list_records("b")] == ["TR1"]


@pytest.mark.asyncio
async def test_settle_transfer_leaves_nothing_on_insufficient_balance(ledger, seed_party):
    await seed_party("a", "0911111111", "20")
    await seed_party("b", "0922222222", "5")

    with pytest.raises(InsufficientBalanceError):
        await ledger.settle_transfer(sender_id="a", recipient_id="b", amount=Decimal("30"), reference="TR1")

    assert (await ledger.find_party("a")).balance == Decimal("20")
    assert (await ledger.find_party("b")).balance == Decimal("5")
    assert await ledger.get_record("TR1") is None


@pytest.mark.asyncio
async def test_concurrent_transfers_conserve_the_sum(ledger, seed_party):
    await seed_party("a", "0911111111", "100")
    await seed_party("b", "0922222222", "0")

    async def transfer(index: int):
        async with ledger.hold("a", "b"):
            return await ledger.settle_transfer(
                sender_id="a", recipient_id="b", amount=Decimal("15"), reference=f"TR{index}"
            )

    results = await asyncio.gather(*(transfer(i) for i in range(10)), return_exceptions=True)

    succeeded = [result for result in results if not isinstance(result, Exception)]
    failed = [result for result in results if isinstance(result, Exception)]
    assert len(succeeded) == 6
    assert all(isinstance(error, InsufficientBalanceError) for error in failed)
    sender = await ledger.find_party("a")
    recipient = await ledger.find_party("b")
    assert sender.balance == Decimal("10")
    assert recipient.balance == Decimal("90")
    assert sender.balance + recipient.balance == Decimal("100")
    assert len(await ledger.list_records("a", limit=50)) == 6


@pytest.mark.asyncio
async def test_opposing_transfers_do_not_deadlock(ledger, seed_party):
    await seed_party("a", "0911111111", "50")
    await seed_party("b", "0922222222", "50")

    async def transfer(sender, recipient, reference):
        async with ledger.hold(sender, recipient):
            await asyncio.sleep(0)
            return await ledger.settle_transfer(
                sender_id=sender, recipient_id=recipient, amount=Decimal("10"), reference=reference
            )

    await asyncio.wait_for(
        asyncio.gather(transfer("a", "b", "TR-ab"), transfer("b", "a", "TR-ba")),
        timeout=5,
    )

    assert (await ledger.find_party("a")).balance == Decimal("50")
    assert (await ledger.find_party("b")).balance == Decimal("50")


@pytest.mark.asyncio
async def test_settle_withdrawal_debits_and_records(ledger, seed_party):
    await seed_party("a", "0911111111", "100")

    settlement = await ledger.settle_withdrawal(
        conversation_id="a",
        amount=Decimal("40"),
        reference="wd-1",
        status=TransactionStatus.SUCCESS,
        details={"method_name": "telebirr"},
    )

    assert settlement.party.balance == Decimal("60")
    record = await ledger.get_record("wd-1")
    assert record.kind is TransactionKind.WITHDRAWAL
    assert record.details == {"method_name": "telebirr"}


@pytest.mark.asyncio
async def test_settle_withdrawal_without_cover_is_a_write_error(ledger, seed_party):
    await seed_party("a", "0911111111", "10")

    with pytest.raises(LedgerWriteError) as exc_info:
        await ledger.settle_withdrawal(
            conversation_id="a",
            amount=Decimal("40"),
            reference="wd-1",
            status=TransactionStatus.SUCCESS,
            details={},
        )

    assert exc_info.value.reference == "wd-1"
    assert exc_info.value.settled
    assert (await ledger.find_party("a")).balance == Decimal("10")
    assert await ledger.get_record("wd-1") is None


@pytest.mark.asyncio
async def test_set_record_status(ledger, seed_party):
    await seed_party("a", "0911111111")

    await ledger.append_record(
        NewTransactionRecord(
            reference="wd-9",
            conversation_id="a",
            amount=Decimal("30"),
            kind=TransactionKind.WITHDRAWAL,
            status=TransactionStatus.PENDING,
        )
    )
    updated = await ledger.set_record_status("wd-9", TransactionStatus.FAILED)

    assert updated.status is TransactionStatus.FAILED
    assert await ledger.set_record_status("missing", TransactionStatus.FAILED) is None


@pytest.mark.asyncio
async def test_party_locks_release_their_entries():
    locks = PartyLocks()

    async with locks.hold("b", "a"):
        assert locks.is_held("a") and locks.is_held("b")

    assert not locks.is_held("a")
    assert locks._locks == {}


@pytest.mark.asyncio
async def test_settle_transfer_storage_failure_changes_no_balance(ledger, seed_party):
    await seed_party("a", "0911111111", "100")
    await seed_party("b", "0922222222", "5")
    await ledger.append_record(
        NewTransactionRecord(
            reference="TR1",
            conversation_id="a",
            amount=Decimal("1"),
            kind=TransactionKind.TRANSFER,
            status=TransactionStatus.COMPLETED,
        )
    )

    with pytest.raises(LedgerWriteError) as exc_info:
        await ledger.settle_transfer(sender_id="a", recipient_id="b", amount=Decimal("30"), reference="TR1")

    assert exc_info.value.reference == "TR1"
    assert not exc_info.value.settled
    assert (await ledger.find_party("a")).balance == Decimal("100")
    assert (await ledger.find_party("b")).balance == Decimal("5")
    assert len(await ledger.list_records("a")) == 1


@pytest.mark.asyncio
async def test_append_record_with_duplicate_reference_is_a_write_error(ledger, seed_party):
    await seed_party("a", "0911111111")
    record = NewTransactionRecord(
        reference="wd-1",
        conversation_id="a",
        amount=Decimal("10"),
        kind=TransactionKind.WITHDRAWAL,
        status=TransactionStatus.PENDING,
    )
    await ledger.append_record(record)

    with pytest.raises(LedgerWriteError):
        await ledger.append_record(record)
