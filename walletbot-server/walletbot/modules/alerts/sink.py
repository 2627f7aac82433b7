"""Escalation sinks for failures that need an operator."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx

from walletbot.core.config import AlertSettings

logger = logging.getLogger(__name__)


class AlertSink(Protocol):
    async def escalate(self, summary: str, **context: Any) -> None:
        ...


class LoggingAlertSink:
    async def escalate(self, summary: str, **context: Any) -> None:
        logger.critical("ALERT: %s %s", summary, context)


class HttpAlertSink(LoggingAlertSink):
    """Logs the alert and posts it to an operator webhook.

    Delivery problems are logged; an alert never raises into the flow that
    triggered it.
    """

    def __init__(self, settings: AlertSettings, client: Optional[httpx.AsyncClient] = None) -> None:
        self.settings = settings
        self._client = client or httpx.AsyncClient(timeout=settings.timeout)

    async def escalate(self, summary: str, **context: Any) -> None:
        await super().escalate(summary, **context)
        if not self.settings.webhook_url:
            return
        payload = {"summary": summary, "context": {key: str(value) for key, value in context.items()}}
        try:
            response = await self._client.post(self.settings.webhook_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Failed to deliver alert %r: %s", summary, e)

    async def aclose(self) -> None:
        await self._client.aclose()


def build_alert_sink(settings: AlertSettings, client: Optional[httpx.AsyncClient] = None) -> AlertSink:
    if settings.webhook_url:
        return HttpAlertSink(settings, client)
    return LoggingAlertSink()
