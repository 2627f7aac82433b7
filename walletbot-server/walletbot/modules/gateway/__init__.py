"""Payment gateway exports"""

from .client import ChapaGatewayClient, PaymentGateway
from .exceptions import GatewayError
from .models import CheckoutHandle, DepositVerification, VerificationResult, WithdrawalAccepted

__all__ = [
    "ChapaGatewayClient",
    "PaymentGateway",
    "GatewayError",
    "CheckoutHandle",
    "DepositVerification",
    "VerificationResult",
    "WithdrawalAccepted",
]
