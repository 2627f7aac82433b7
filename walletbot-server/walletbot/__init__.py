"""Conversational wallet: deposits, withdrawals and peer transfers."""

__version__ = "0.1.0"
