"""Deposit order exports"""

from .exceptions import DepositError, DepositOrderNotFoundError
from .models import DepositConfirmation, DepositOrder
from .service import DepositOrderService

__all__ = [
    "DepositError",
    "DepositOrderNotFoundError",
    "DepositConfirmation",
    "DepositOrder",
    "DepositOrderService",
]
