"""Simple dependency container for wiring core services."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from walletbot.core.config import Settings, get_settings
from walletbot.infrastructure.database.session import build_engine, build_session_factory
from walletbot.modules.alerts import AlertSink, build_alert_sink
from walletbot.modules.conversation import ChoiceCollector, ConversationHub, ConversationTransport, InputCollector
from walletbot.modules.deposits import DepositOrderService
from walletbot.modules.flows import FlowContext, FlowRunner
from walletbot.modules.gateway import ChapaGatewayClient, PaymentGateway
from walletbot.modules.ledger import LedgerService
from walletbot.websocket.manager import ConnectionManager

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    http_client: httpx.AsyncClient
    transport: ConversationTransport
    hub: ConversationHub
    gateway: PaymentGateway
    ledger: LedgerService
    deposits: DepositOrderService
    alerts: AlertSink
    runner: FlowRunner

    @classmethod
    def build(
        cls,
        settings: Optional[Settings] = None,
        *,
        engine: Optional[AsyncEngine] = None,
        transport: Optional[ConversationTransport] = None,
        gateway: Optional[PaymentGateway] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "ApplicationContainer":
        settings = settings or get_settings()
        engine = engine or build_engine(settings)
        session_factory = build_session_factory(engine)
        http_client = http_client or httpx.AsyncClient(
            base_url=settings.gateway.base_url,
            timeout=settings.gateway.request_timeout,
        )
        transport = transport or ConnectionManager()
        gateway = gateway or ChapaGatewayClient(settings.gateway, client=http_client)
        hub = ConversationHub()
        timeout = settings.collector_timeout
        ledger = LedgerService(session_factory, currency=settings.currency)
        deposits = DepositOrderService(session_factory, gateway, currency=settings.currency)
        alerts = build_alert_sink(settings.alerts)

        context = FlowContext(
            settings=settings,
            transport=transport,
            inputs=InputCollector(transport, hub, timeout=timeout),
            choices=ChoiceCollector(transport, hub, timeout=timeout),
            gateway=gateway,
            ledger=ledger,
            deposits=deposits,
        )
        logger.info("Container built for %s (%s)", settings.project_name, settings.environment)
        return cls(
            settings=settings,
            engine=engine,
            session_factory=session_factory,
            http_client=http_client,
            transport=transport,
            hub=hub,
            gateway=gateway,
            ledger=ledger,
            deposits=deposits,
            alerts=alerts,
            runner=FlowRunner(context, alerts),
        )

    async def aclose(self) -> None:
        await self.runner.shutdown()
        if isinstance(self.transport, ConnectionManager):
            await self.transport.close_all()
        aclose = getattr(self.alerts, "aclose", None)
        if aclose is not None:
            await aclose()
        await self.http_client.aclose()
        await self.engine.dispose()


__all__ = ["ApplicationContainer"]
