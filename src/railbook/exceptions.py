"""Custom exceptions for the railway reservation service."""

from typing import Optional


class RailbookException(Exception):
    """Base exception for all reservation errors."""
    pass


class ValidationError(RailbookException):
    """
    Raised when user input blocks progression through the booking flow.

    ``field_errors`` maps a field name (``"source"``, ``"journey_date"``, or
    ``"passengers[1].age"`` for passenger fields) to its message.
    """

    def __init__(self, message: str, field_errors: Optional[dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.field_errors = dict(field_errors or {})


class PaymentInputError(ValidationError):
    """Raised when the selected payment method is missing required details."""
    pass


class NavigationStateError(RailbookException):
    """Raised when a flow step is entered without the state of its precursor."""

    def __init__(self, message: str, redirect_to: str = "/search"):
        super().__init__(message)
        self.redirect_to = redirect_to
