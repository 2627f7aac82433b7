"""
Pytest configuration and fixtures
"""
from decimal import Decimal
from typing import Optional

import pytest
import pytest_asyncio

from walletbot.core.config import ConversationSettings, DatabaseSettings, GatewaySettings, Settings
from walletbot.infrastructure.database import build_engine, build_session_factory, init_db
from walletbot.modules.conversation import ChoiceCollector, ConversationHub, InputCollector
from walletbot.modules.deposits import DepositOrderService
from walletbot.modules.flows import FlowContext, FlowRunner
from walletbot.modules.ledger import LedgerService, Party

from tests.fakes import FakeGateway, RecordingAlertSink, ScriptedTransport


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        environment="test",
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'walletbot.db'}"),
        gateway=GatewaySettings(secret_key="sk-test", settle_delay=0, verify_interval=0),
        conversation=ConversationSettings(collector_timeout=0.3),
    )


@pytest_asyncio.fixture
async def engine(settings):
    engine = build_engine(settings)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def ledger(session_factory, settings) -> LedgerService:
    return LedgerService(session_factory, currency=settings.currency)


@pytest.fixture
def hub() -> ConversationHub:
    return ConversationHub()


@pytest.fixture
def transport(hub) -> ScriptedTransport:
    return ScriptedTransport(hub)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def deposits(session_factory, gateway, settings) -> DepositOrderService:
    return DepositOrderService(session_factory, gateway, currency=settings.currency)


@pytest.fixture
def alerts() -> RecordingAlertSink:
    return RecordingAlertSink()


@pytest.fixture
def flow_context(settings, transport, hub, gateway, ledger, deposits) -> FlowContext:
    timeout = settings.collector_timeout
    return FlowContext(
        settings=settings,
        transport=transport,
        inputs=InputCollector(transport, hub, timeout=timeout),
        choices=ChoiceCollector(transport, hub, timeout=timeout),
        gateway=gateway,
        ledger=ledger,
        deposits=deposits,
    )


@pytest.fixture
def runner(flow_context, alerts) -> FlowRunner:
    return FlowRunner(flow_context, alerts)


@pytest.fixture
def seed_party(ledger):
    async def _seed(conversation_id: str, phone_number: str, balance: str = "0", handle: Optional[str] = "user") -> Party:
        await ledger.register_party(conversation_id, handle, phone_number)
        if Decimal(balance):
            return await ledger.adjust_balance(conversation_id, Decimal(balance))
        return await ledger.find_party(conversation_id)

    return _seed
