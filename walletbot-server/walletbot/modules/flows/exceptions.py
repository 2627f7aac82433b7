"""Flow precondition and business-rule errors."""

from walletbot.core.exceptions import FlowError
from walletbot.modules.ledger.exceptions import PartyNotFoundError


class NotRegisteredError(PartyNotFoundError):
    """Raised when a flow is started from a conversation without a party."""


class IncompleteProfileError(FlowError):
    """Raised when the party lacks the handle or phone number a flow needs."""

    code = "incomplete_profile"
    user_message = "Please set a username and phone number in your settings and try again."


class RecipientNotFoundError(FlowError):
    code = "recipient_not_found"
    user_message = "Recipient not found. Please check the phone number and try again."


class SelfTransferError(FlowError):
    code = "self_transfer"
    user_message = "You cannot transfer to yourself."


class FlowBusyError(FlowError):
    """Raised when a conversation already runs a flow."""

    code = "busy"
    user_message = "Please finish your current request first."


class WithdrawalNotSettledError(FlowError):
    """Raised when the gateway accepted a withdrawal but did not confirm it.

    The balance is untouched; ``status`` is the last verification status seen.
    """

    code = "withdrawal_not_settled"
    user_message = "❌ There was an error processing your withdrawal. Please try again."

    def __init__(self, message: str | None = None, *, reference: str | None = None, status: str | None = None) -> None:
        super().__init__(message)
        self.reference = reference
        self.status = status
