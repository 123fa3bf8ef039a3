"""Custom exceptions for product-sink."""


class SinkError(Exception):
    """Base exception for sink errors."""
    pass


class DecodeError(SinkError):
    """Raised when a change event cannot be decoded (schema drift, broken payload)."""
    pass


class StoreError(SinkError):
    """Raised when a MongoDB write fails."""
    pass


class SinkHalted(SinkError):
    """Raised by the consume loop when a message could not be applied.

    The offset of that message is never committed, so a restart redelivers it.
    """

    def __init__(self, outcome, message=None):
        super().__init__(message or f"sink halted: {outcome.error}")
        self.outcome = outcome
