"""Payment gateway callbacks."""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from walletbot.core.container import ApplicationContainer
from walletbot.core.crypto import verify_signature
from walletbot.interfaces.http.deps import get_container
from walletbot.modules.deposits import DepositConfirmation, DepositOrderNotFoundError
from walletbot.modules.gateway import GatewayError
from walletbot.modules.ledger import LedgerWriteError
from walletbot.schemas import DepositCallback, DepositConfirmationResponse

logger = logging.getLogger(__name__)

router = APIRouter()

SIGNATURE_HEADERS = ("chapa-signature", "x-chapa-signature")


@router.get("/chapa", response_model=DepositConfirmationResponse, summary="Deposit return callback")
async def chapa_callback(
    trx_ref: Optional[str] = Query(None),
    tx_ref: Optional[str] = Query(None),
    reference: Optional[str] = Query(None),
    container: ApplicationContainer = Depends(get_container),
):
    callback = DepositCallback(trx_ref=trx_ref, tx_ref=tx_ref, reference=reference)
    return await _confirm(container, callback)


@router.post("/chapa", response_model=DepositConfirmationResponse, summary="Deposit webhook")
async def chapa_webhook(request: Request, container: ApplicationContainer = Depends(get_container)):
    raw = await request.body()
    secret = container.settings.gateway.webhook_secret
    if secret:
        signature = next((request.headers[name] for name in SIGNATURE_HEADERS if name in request.headers), None)
        if not verify_signature(raw, signature, secret):
            logger.warning("Rejected deposit webhook with invalid signature")
            raise HTTPException(status_code=401, detail="invalid signature")

    try:
        payload = json.loads(raw or b"{}")
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail="invalid JSON body") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="invalid JSON body")
    return await _confirm(container, DepositCallback.model_validate(payload))


async def _confirm(container: ApplicationContainer, callback: DepositCallback) -> DepositConfirmationResponse:
    reference = callback.resolved_reference
    if not reference:
        raise HTTPException(status_code=400, detail="missing transaction reference")

    try:
        confirmation = await container.deposits.confirm(reference)
    except DepositOrderNotFoundError as exc:
        logger.warning("Callback for unknown deposit %s", reference)
        raise HTTPException(status_code=404, detail="unknown reference") from exc
    except GatewayError as exc:
        logger.error("Could not verify deposit %s: %s", reference, exc.reason or exc.cause or exc)
        raise HTTPException(status_code=502, detail="verification failed") from exc
    except LedgerWriteError as exc:
        logger.error("Deposit %s verified but not credited: %s", reference, exc)
        await container.alerts.escalate("deposit verified but not credited", reference=reference, error=exc)
        raise HTTPException(status_code=500, detail="ledger write failed") from exc

    if confirmation.applied:
        await _notify(container, confirmation)
    return DepositConfirmationResponse(
        reference=reference,
        status=confirmation.order.status,
        applied=confirmation.applied,
        balance=confirmation.party.balance if confirmation.party else None,
    )


async def _notify(container: ApplicationContainer, confirmation: DepositConfirmation) -> None:
    currency = confirmation.order.currency
    amount = confirmation.record.amount if confirmation.record else confirmation.order.amount
    text = (
        f"✅ Deposit of {amount} {currency} received!\n"
        f"New balance: {confirmation.party.balance} {currency}"
    )
    try:
        await container.transport.send_text(confirmation.order.conversation_id, text)
    except Exception as exc:  # pylint: disable=broad-except
        logger.error("Failed to notify %s about deposit %s: %s", confirmation.order.conversation_id, confirmation.order.reference, exc)
