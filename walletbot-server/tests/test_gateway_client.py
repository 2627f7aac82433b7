"""Tests for the payment gateway client against a mocked HTTP transport"""
import json
import time
from decimal import Decimal

import httpx
import pytest

from walletbot.core.config import GatewaySettings
from walletbot.modules.gateway import ChapaGatewayClient, GatewayError
from walletbot.modules.gateway.client import SERVICE_UNAVAILABLE_MESSAGE


def _client(handler, **overrides) -> ChapaGatewayClient:
    settings = GatewaySettings(secret_key="sk-test", base_url="https://gateway.test", settle_delay=0, **overrides)
    http = httpx.AsyncClient(base_url=settings.base_url, transport=httpx.MockTransport(handler))
    return ChapaGatewayClient(settings, client=http)


@pytest.mark.asyncio
async def test_initialize_deposit_returns_checkout():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"status": "success", "data": {"checkout_url": "https://pay.test/abc"}})

    client = _client(handler)
    handle = await client.initialize_deposit(Decimal("100"), "abebe", "0912345678")
    await client.aclose()

    assert handle.checkout_url == "https://pay.test/abc"
    assert handle.reference.startswith("dep-")
    assert seen["path"] == "/transaction/initialize"
    assert seen["auth"] == "Bearer sk-test"
    body = seen["body"]
    assert body["amount"] == "100"
    assert body["tx_ref"] == handle.reference
    assert body["first_name"] == "abebe"
    assert body["phone_number"] == "0912345678"
    assert body["currency"] == "ETB"
    assert body["meta"] == {"hide_receipt": "true"}


@pytest.mark.asyncio
async def test_each_deposit_gets_a_fresh_reference():
    client = _client(lambda request: httpx.Response(200, json={"status": "success", "data": {"checkout_url": "u"}}))
    first = await client.initialize_deposit(Decimal("10"), "a", "0911111111")
    second = await client.initialize_deposit(Decimal("10"), "a", "0911111111")
    await client.aclose()

    assert first.reference != second.reference


@pytest.mark.asyncio
async def test_non_success_reply_carries_gateway_reason():
    client = _client(lambda request: httpx.Response(400, json={"status": "failed", "message": "Invalid currency"}))

    with pytest.raises(GatewayError) as exc_info:
        await client.initialize_deposit(Decimal("10"), "a", "0911111111")
    await client.aclose()

    assert exc_info.value.reason == "Invalid currency"
    assert exc_info.value.cause is None


@pytest.mark.asyncio
async def test_transport_failure_is_wrapped():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    with pytest.raises(GatewayError) as exc_info:
        await client.initialize_deposit(Decimal("10"), "a", "0911111111")
    await client.aclose()

    assert isinstance(exc_info.value.cause, httpx.ConnectError)
    assert exc_info.value.user_message == GatewayError.user_message


@pytest.mark.asyncio
async def test_unparseable_body_is_wrapped():
    client = _client(lambda request: httpx.Response(502, text="<html>bad gateway</html>"))

    with pytest.raises(GatewayError) as exc_info:
        await client.initialize_deposit(Decimal("10"), "a", "0911111111")
    await client.aclose()

    assert exc_info.value.cause is not None


@pytest.mark.asyncio
async def test_withdrawal_payload_and_acceptance():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"status": "success", "message": "Transfer Queued Successfully", "data": "ok"})

    client = _client(handler)
    accepted = await client.initiate_withdrawal(Decimal("50"), "Abebe Kebede", "0912345678", "855")
    await client.aclose()

    assert seen["path"] == "/transfers"
    assert seen["body"] == {
        "account_name": "Abebe Kebede",
        "account_number": "0912345678",
        "amount": "50",
        "currency": "ETB",
        "reference": accepted.reference,
        "bank_code": "855",
        "beneficiary_name": "Abebe Kebede",
    }
    assert accepted.message == "Transfer Queued Successfully"
    assert accepted.data == {}


@pytest.mark.asyncio
async def test_exhausted_merchant_float_maps_to_service_unavailable():
    client = _client(lambda request: httpx.Response(400, json={"status": "failed", "message": "Insufficient Balance"}))

    with pytest.raises(GatewayError) as exc_info:
        await client.initiate_withdrawal(Decimal("50"), "Abebe Kebede", "0912345678", "855")
    await client.aclose()

    assert exc_info.value.user_message == SERVICE_UNAVAILABLE_MESSAGE


@pytest.mark.asyncio
async def test_verify_withdrawal_waits_for_settling_delay():
    def handler(request):
        if request.method == "POST":
            return httpx.Response(200, json={"status": "success", "message": "queued"})
        assert request.url.path.startswith("/transfers/verify/")
        return httpx.Response(200, json={"status": "success", "data": {"status": "success", "bank_name": "telebirr"}})

    client = _client(handler)
    client.settings = client.settings.model_copy(update={"settle_delay": 0.05})
    started = time.monotonic()
    accepted = await client.initiate_withdrawal(Decimal("50"), "Abebe Kebede", "0912345678", "855")
    result = await client.verify_withdrawal(accepted.reference)
    elapsed = time.monotonic() - started
    await client.aclose()

    assert elapsed >= 0.04
    assert result.succeeded and result.is_terminal
    assert result.bank_name == "telebirr"


@pytest.mark.asyncio
async def test_verify_withdrawal_reports_non_terminal_status():
    client = _client(lambda request: httpx.Response(200, json={"status": "success", "data": {"status": "pending"}}))
    result = await client.verify_withdrawal("wd-1")
    await client.aclose()

    assert not result.succeeded
    assert not result.failed
    assert not result.is_terminal


@pytest.mark.asyncio
async def test_verify_deposit_parses_amount():
    def handler(request):
        assert request.url.path == "/transaction/verify/dep-1"
        return httpx.Response(
            200, json={"status": "success", "data": {"status": "success", "amount": 100.5, "currency": "ETB"}}
        )

    client = _client(handler)
    result = await client.verify_deposit("dep-1")
    await client.aclose()

    assert result.succeeded
    assert result.amount == Decimal("100.5")
    assert result.currency == "ETB"
