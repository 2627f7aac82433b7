"""Ledger domain specific exceptions."""

from walletbot.core.exceptions import FlowError


class LedgerError(FlowError):
    """Base class for ledger domain errors."""

    code = "ledger_error"


class PartyNotFoundError(LedgerError):
    """Raised when no party is registered for the conversation."""

    code = "not_registered"
    user_message = "Please register first. /register"


class AlreadyRegisteredError(LedgerError):
    code = "already_registered"
    user_message = "You are already registered!"


class PhoneInUseError(LedgerError):
    """Raised when the contact number belongs to another party."""

    code = "phone_in_use"
    user_message = "This phone number is already registered to another account."


class InsufficientBalanceError(LedgerError):
    code = "insufficient_balance"
    user_message = "Insufficient balance."


class LedgerWriteError(LedgerError):
    """Raised when a settlement could not be persisted.

    ``reference`` identifies the money movement for manual reconciliation.
    ``settled`` is true when the gateway already moved the money.
    """

    code = "ledger_write_failed"
    user_message = "We could not update your balance. Support has been notified."

    def __init__(
        self,
        message: str | None = None,
        *,
        reference: str | None = None,
        settled: bool = False,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.reference = reference
        self.settled = settled
