"""Base error shared by every flow-terminating failure."""


class FlowError(Exception):
    """Raised when a flow must stop; ``user_message`` is safe to show the party."""

    code = "flow_error"
    user_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None, *, user_message: str | None = None) -> None:
        super().__init__(message or self.user_message)
        if user_message is not None:
            self.user_message = user_message


__all__ = ["FlowError"]
