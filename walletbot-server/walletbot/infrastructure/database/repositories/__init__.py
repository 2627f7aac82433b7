"""SQLAlchemy-backed repository implementations."""

from .deposit_order_repository import SqlDepositOrderRepository
from .ledger_repository import SqlLedgerRepository

__all__ = [
    "SqlDepositOrderRepository",
    "SqlLedgerRepository",
]
