"""Domain modules and shared exports."""

from . import alerts, conversation, deposits, flows, gateway, ledger

__all__ = [
    "alerts",
    "conversation",
    "deposits",
    "flows",
    "gateway",
    "ledger",
]
