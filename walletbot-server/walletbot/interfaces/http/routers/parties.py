"""Read-only party endpoints for support staff."""

from fastapi import APIRouter, Depends, HTTPException, Query

from walletbot.interfaces.http.deps import get_deposit_service, get_ledger_service
from walletbot.modules.deposits import DepositOrderService
from walletbot.modules.ledger import LedgerService, TransactionRecord
from walletbot.schemas import (
    DepositOrderListResponse,
    DepositOrderResponse,
    PartyResponse,
    TransactionListResponse,
    TransactionResponse,
)

router = APIRouter()


def _to_schema(record: TransactionRecord) -> TransactionResponse:
    return TransactionResponse(
        reference=record.reference,
        counterparty_id=record.counterparty_id,
        amount=record.amount,
        currency=record.currency,
        status=record.status.value,
        kind=record.kind.value,
        details=record.details,
        created_at=record.created_at,
    )


@router.get("/{conversation_id}", response_model=PartyResponse, summary="Party profile and balance")
async def get_party(conversation_id: str, ledger: LedgerService = Depends(get_ledger_service)):
    party = await ledger.get_party(conversation_id)
    if party is None:
        raise HTTPException(status_code=404, detail="party not found")
    return PartyResponse.model_validate(party)


@router.get("/{conversation_id}/transactions", response_model=TransactionListResponse, summary="Ledger records")
async def list_transactions(
    conversation_id: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    ledger: LedgerService = Depends(get_ledger_service),
):
    records = await ledger.list_records(conversation_id, limit=limit, offset=offset)
    return TransactionListResponse(transactions=[_to_schema(record) for record in records])


@router.get("/{conversation_id}/deposits", response_model=DepositOrderListResponse, summary="Issued deposit orders")
async def list_deposits(
    conversation_id: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    deposits: DepositOrderService = Depends(get_deposit_service),
):
    orders = await deposits.list_orders(conversation_id, limit=limit, offset=offset)
    return DepositOrderListResponse(orders=[DepositOrderResponse.model_validate(order) for order in orders])
