"""Conversation domain specific exceptions."""

from walletbot.core.exceptions import FlowError


class ConversationTimeoutError(FlowError, TimeoutError):
    """Raised when the party does not answer within the collector timeout."""

    code = "timeout"
    user_message = "Response timed out. Please start again."


class ListenerBusyError(RuntimeError):
    """Raised when a second listener of the same kind is registered for a conversation."""


class ValidationError(ValueError):
    """Raised by input parsers for malformed or out-of-range values."""
