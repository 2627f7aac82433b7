"""Reusable FastAPI dependencies."""

from .container import get_container, get_deposit_service, get_ledger_service

__all__ = [
    "get_container",
    "get_deposit_service",
    "get_ledger_service",
]
