"""Container-backed dependency providers."""

from fastapi import Depends
from fastapi.requests import HTTPConnection

from walletbot.core.container import ApplicationContainer
from walletbot.modules.deposits import DepositOrderService
from walletbot.modules.ledger import LedgerService


def get_container(connection: HTTPConnection) -> ApplicationContainer:
    return connection.app.state.container


def get_deposit_service(container: ApplicationContainer = Depends(get_container)) -> DepositOrderService:
    return container.deposits


def get_ledger_service(container: ApplicationContainer = Depends(get_container)) -> LedgerService:
    return container.ledger


__all__ = [
    "get_container",
    "get_deposit_service",
    "get_ledger_service",
]
