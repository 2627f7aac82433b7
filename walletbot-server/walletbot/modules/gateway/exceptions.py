"""Payment gateway errors."""

from __future__ import annotations

from walletbot.core.exceptions import FlowError


class GatewayError(FlowError):
    """Transport failure or a non-success reply from the payment gateway.

    ``reason`` holds the gateway's own message when it sent one, ``cause``
    the underlying exception for transport and decoding failures.
    """

    code = "gateway_error"
    user_message = "There was an error processing your transaction. Please try again."

    def __init__(
        self,
        message: str | None = None,
        *,
        reason: str | None = None,
        cause: Exception | None = None,
        reference: str | None = None,
        user_message: str | None = None,
    ) -> None:
        super().__init__(message or reason or (str(cause) if cause else None), user_message=user_message)
        self.reason = reason
        self.cause = cause
        self.reference = reference
