"""Tests for the HTTP routers: deposit webhook, party views, health"""
import json
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from walletbot.core.container import ApplicationContainer
from walletbot.core.crypto import sign_payload
from walletbot.main import create_app
from walletbot.modules.gateway import GatewayError

A_PHONE = "0911111111"


@pytest_asyncio.fixture
async def container(settings, engine, transport, gateway):
    container = ApplicationContainer.build(settings, engine=engine, transport=transport, gateway=gateway)
    yield container
    await container.aclose()


@pytest_asyncio.fixture
async def client(settings, container):
    app = create_app(settings, container)
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_get_callback_credits_and_notifies(client, container, transport):
    await container.ledger.register_party("a", "abebe", A_PHONE)
    await container.deposits.create_order(conversation_id="a", reference="dep-1", amount=Decimal("100"), checkout_url="u")

    response = await client.get("/webhooks/chapa", params={"trx_ref": "dep-1", "status": "success"})
    repeat = await client.get("/webhooks/chapa", params={"trx_ref": "dep-1"})

    assert response.status_code == 200
    assert response.json()["applied"] is True
    assert response.json()["status"] == "success"
    assert repeat.json()["applied"] is False
    assert (await container.ledger.find_party("a")).balance == Decimal("100")
    assert transport.texts("a") == ["✅ Deposit of 100.00 ETB received!\nNew balance: 100.00 ETB"]


@pytest.mark.asyncio
async def test_unknown_reference_is_404(client):
    response = await client.get("/webhooks/chapa", params={"tx_ref": "dep-missing"})

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_missing_reference_is_400(client):
    response = await client.post("/webhooks/chapa", json={"status": "success"})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_post_requires_valid_signature_when_secret_is_set(client, container):
    container.settings.gateway.webhook_secret = "whsec"
    await container.ledger.register_party("a", "abebe", A_PHONE)
    await container.deposits.create_order(conversation_id="a", reference="dep-1", amount=Decimal("50"), checkout_url="u")
    body = json.dumps({"tx_ref": "dep-1", "status": "success"}).encode()

    forged = await client.post("/webhooks/chapa", content=body, headers={"x-chapa-signature": "0" * 64})
    signed = await client.post("/webhooks/chapa", content=body, headers={"Chapa-Signature": sign_payload(body, "whsec")})

    assert forged.status_code == 401
    assert signed.status_code == 200
    assert signed.json()["balance"] == "50.00"


@pytest.mark.asyncio
async def test_failed_payment_is_reported(client, container, gateway):
    await container.ledger.register_party("a", "abebe", A_PHONE)
    await container.deposits.create_order(conversation_id="a", reference="dep-1", amount=Decimal("50"), checkout_url="u")
    gateway.deposit_status = "failed"

    response = await client.get("/webhooks/chapa", params={"trx_ref": "dep-1"})

    assert response.status_code == 200
    assert response.json() == {"reference": "dep-1", "status": "failed", "applied": False, "balance": None}


@pytest.mark.asyncio
async def test_verification_error_is_502(client, container, gateway, monkeypatch):
    await container.ledger.register_party("a", "abebe", A_PHONE)
    await container.deposits.create_order(conversation_id="a", reference="dep-1", amount=Decimal("50"), checkout_url="u")

    async def unreachable(reference):
        raise GatewayError(reason="timeout", reference=reference)

    monkeypatch.setattr(gateway, "verify_deposit", unreachable)

    response = await client.get("/webhooks/chapa", params={"trx_ref": "dep-1"})

    assert response.status_code == 502
    assert (await container.deposits.get_order("dep-1")).status == "pending"


@pytest.mark.asyncio
async def test_party_views(client, container):
    await container.ledger.register_party("a", "abebe", A_PHONE)
    await container.ledger.adjust_balance("a", Decimal("25"))
    await container.deposits.create_order(conversation_id="a", reference="dep-1", amount=Decimal("50"), checkout_url="u")

    party = await client.get("/parties/a")
    transactions = await client.get("/parties/a/transactions")
    orders = await client.get("/parties/a/deposits")
    missing = await client.get("/parties/nobody")

    assert party.json()["balance"] == "25.00"
    assert transactions.json() == {"transactions": []}
    assert [order["reference"] for order in orders.json()["orders"]] == ["dep-1"]
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
