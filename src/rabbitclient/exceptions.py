"""
Custom exceptions for the rabbitclient library.

This module contains all custom exception classes used throughout the library.
"""

from typing import Optional


class RabbitClientError(Exception):
    """Base exception for all rabbitclient errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class BrokerConnectionError(RabbitClientError):
    """
    Raised internally when the broker cannot be reached or the handshake fails.

    Never propagated to callers of ``connect()``; it is delivered to
    ``reconnecting`` and ``error`` listeners instead.
    """


class OperationError(RabbitClientError):
    """Raised when an exchange/queue declare, bind, publish or consume fails."""


class ValidationError(RabbitClientError, ValueError):
    """Raised when an argument is outside the allowed set of values."""


class CloseError(RabbitClientError):
    """Raised when closing the broker connections fails for a reason other than
    the broker already being unreachable."""


class PayloadError(RabbitClientError):
    """Raised when a delivered message body is not valid JSON."""

    def __init__(
        self, body, original_error: Optional[Exception] = None, message: str = None
    ):
        self.body = body
        if message is None:
            message = f"Unable to decode message payload: {body!r:.200}"
        super().__init__(message, original_error)
