"""
Payment gateway client (Chapa-compatible HTTP API)
"""
from __future__ import annotations

import asyncio
import logging
import time
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Protocol

import httpx

from walletbot.core.config import GatewaySettings
from walletbot.core.crypto import generate_reference

from .exceptions import GatewayError
from .models import CheckoutHandle, DepositVerification, VerificationResult, WithdrawalAccepted

logger = logging.getLogger(__name__)

GATEWAY_FLOAT_EXHAUSTED = "Insufficient Balance"
SERVICE_UNAVAILABLE_MESSAGE = (
    "Sorry, this service is temporarily unavailable. Please try again later or contact support."
)


class PaymentGateway(Protocol):
    async def initialize_deposit(self, amount: Decimal, payer_name: str, payer_phone: str) -> CheckoutHandle:
        ...

    async def initiate_withdrawal(
        self, amount: Decimal, account_name: str, account_number: str, method_id: str
    ) -> WithdrawalAccepted:
        ...

    async def verify_withdrawal(self, reference: str) -> VerificationResult:
        ...

    async def verify_deposit(self, reference: str) -> DepositVerification:
        ...


class ChapaGatewayClient:
    """
    Client for the payment processor.
    Every failure surfaces as GatewayError; nothing here touches conversation state.
    """

    def __init__(self, settings: GatewaySettings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._client = client or httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.request_timeout,
        )
        # reference -> monotonic time before which verification must not run
        self._settle_deadlines: Dict[str, float] = {}

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.secret_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, reference: str, **kwargs) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, headers=self._headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Gateway %s %s failed for %s: %s", method, path, reference, e)
            raise GatewayError(cause=e, reference=reference) from e

        try:
            body = response.json()
        except ValueError as e:
            logger.error("Unparseable gateway response for %s (HTTP %s): %s", reference, response.status_code, response.text)
            raise GatewayError(cause=e, reference=reference) from e

        if not isinstance(body, dict):
            logger.error("Malformed gateway response for %s: %r", reference, body)
            raise GatewayError("malformed gateway response", reference=reference)

        logger.debug("Gateway response for %s: %s", reference, body)
        return body

    @staticmethod
    def _is_success(body: Dict[str, Any]) -> bool:
        return str(body.get("status", "")).lower() == "success"

    @staticmethod
    def _message(body: Dict[str, Any]) -> str:
        message = body.get("message")
        if isinstance(message, dict):
            # validation errors come back keyed by field
            return "; ".join(f"{key}: {value}" for key, value in message.items())
        return str(message) if message else "request failed"

    async def initialize_deposit(self, amount: Decimal, payer_name: str, payer_phone: str) -> CheckoutHandle:
        tx_ref = generate_reference("dep-")
        logger.info("Initializing deposit %s amount=%s payer=%s", tx_ref, amount, payer_name)

        payload = {
            "amount": str(amount),
            "currency": self.settings.currency,
            "email": self.settings.merchant_email,
            "first_name": payer_name,
            "last_name": self.settings.merchant_name,
            "phone_number": payer_phone,
            "tx_ref": tx_ref,
            "callback_url": self.settings.callback_url,
            "return_url": self.settings.return_url,
            "customization": {
                "title": self.settings.checkout_title,
                "description": self.settings.checkout_description,
            },
            "meta": {"hide_receipt": "true"},
        }
        body = await self._request("POST", "/transaction/initialize", tx_ref, json=payload)

        data = body.get("data")
        checkout_url = data.get("checkout_url") if isinstance(data, dict) else None
        if not self._is_success(body) or not checkout_url:
            reason = self._message(body)
            logger.error("Deposit %s rejected by gateway: %s", tx_ref, reason)
            raise GatewayError(reason=reason, reference=tx_ref)

        logger.info("Checkout ready for %s", tx_ref)
        return CheckoutHandle(reference=tx_ref, checkout_url=checkout_url)

    async def initiate_withdrawal(
        self, amount: Decimal, account_name: str, account_number: str, method_id: str
    ) -> WithdrawalAccepted:
        reference = generate_reference("wd-")
        logger.info("Initiating withdrawal %s amount=%s method=%s", reference, amount, method_id)

        payload = {
            "account_name": account_name,
            "account_number": account_number,
            "amount": str(amount),
            "currency": self.settings.currency,
            "reference": reference,
            "bank_code": method_id,
            "beneficiary_name": account_name,
        }
        body = await self._request("POST", "/transfers", reference, json=payload)

        if not self._is_success(body):
            reason = self._message(body)
            logger.error("Withdrawal %s rejected by gateway: %s", reference, reason)
            user_message = SERVICE_UNAVAILABLE_MESSAGE if reason == GATEWAY_FLOAT_EXHAUSTED else None
            raise GatewayError(reason=reason, reference=reference, user_message=user_message)

        self._settle_deadlines[reference] = time.monotonic() + self.settings.settle_delay
        data = body.get("data")
        return WithdrawalAccepted(
            reference=reference,
            message=body.get("message"),
            data=data if isinstance(data, dict) else {},
        )

    async def _wait_until_settled(self, reference: str) -> None:
        deadline = self._settle_deadlines.pop(reference, None)
        if deadline is None:
            return
        remaining = deadline - time.monotonic()
        if remaining > 0:
            logger.debug("Waiting %.2fs before verifying %s", remaining, reference)
            await asyncio.sleep(remaining)

    async def verify_withdrawal(self, reference: str) -> VerificationResult:
        await self._wait_until_settled(reference)
        body = await self._request("GET", f"/transfers/verify/{reference}", reference)

        data = body.get("data")
        if not self._is_success(body) or not isinstance(data, dict):
            reason = self._message(body)
            logger.error("Verification of %s failed: %s", reference, reason)
            raise GatewayError(reason=reason, reference=reference)

        result = VerificationResult(
            reference=reference,
            status=str(data.get("status") or "unknown"),
            bank_name=data.get("bank_name"),
            data=data,
        )
        logger.info("Withdrawal %s verified with status %s", reference, result.status)
        return result

    async def verify_deposit(self, reference: str) -> DepositVerification:
        body = await self._request("GET", f"/transaction/verify/{reference}", reference)

        data = body.get("data")
        if not self._is_success(body) or not isinstance(data, dict):
            reason = self._message(body)
            logger.error("Deposit verification of %s failed: %s", reference, reason)
            raise GatewayError(reason=reason, reference=reference)

        amount = None
        if data.get("amount") is not None:
            try:
                amount = Decimal(str(data["amount"]))
            except InvalidOperation:
                logger.warning("Deposit %s reported a non-numeric amount %r", reference, data["amount"])
        return DepositVerification(
            reference=reference,
            status=str(data.get("status") or "unknown"),
            amount=amount,
            currency=data.get("currency"),
            data=data,
        )
