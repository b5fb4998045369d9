"""
Comet Cupboard - Custom Exceptions
===================================
Business-level exceptions that can be caught and converted to HTTP responses.
The policy engine itself never raises; these belong to the service layer.
"""

from datetime import date
from typing import Optional


class CupboardError(Exception):
    """Base exception for all business logic errors."""
    status_code = 400

    def __init__(self, message: str = "Something went wrong."):
        self.message = message
        super().__init__(self.message)


class AuthorizationError(CupboardError):
    """Raised when user lacks permission."""
    status_code = 403


class NotFoundError(CupboardError):
    """Raised when a requested resource doesn't exist."""
    status_code = 404


class EmptyCartError(CupboardError):
    """Raised when checking out an empty cart."""
    def __init__(self):
        super().__init__("Your cart is empty.")


class PickupSlotError(CupboardError):
    """Raised when the pickup date/time is missing or not offered."""
    pass


class OrderLimitError(CupboardError):
    """Raised when the weekly order limit blocks a checkout."""
    status_code = 409

    def __init__(self, next_eligible_date: Optional[date] = None):
        self.next_eligible_date = next_eligible_date
        msg = "You can only place one order per week."
        if next_eligible_date:
            msg += f" You can order again on {next_eligible_date:%A, %B} {next_eligible_date.day}."
        super().__init__(msg)


class InvalidTransitionError(CupboardError):
    """Raised when a pickup in a terminal state is asked to change status."""
    status_code = 409

