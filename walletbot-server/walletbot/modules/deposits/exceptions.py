"""Deposit domain specific exceptions."""


class DepositError(Exception):
    """Base class for deposit confirmation errors."""


class DepositOrderNotFoundError(DepositError):
    """Raised when a callback names a reference no deposit order was issued for."""
