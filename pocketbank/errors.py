"""
Domain errors raised by the money-movement services.

Each error carries the HTTP-equivalent status code the API
layer should use. The services never raise HTTPException
themselves; routers translate these.
"""

from decimal import Decimal


class PocketBankError(Exception):
    """Base class for every error the services raise on purpose."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def public_message(self) -> str:
        """Message that is safe to show to the caller."""
        return self.message


class InvalidRequest(PocketBankError):
    """Malformed or missing parameters, self-transfer rule violations, bad amount."""

    status_code = 400


class NotFound(PocketBankError):
    """User, account, or bill absent or not owned by the caller."""

    status_code = 404


class InsufficientFunds(PocketBankError):
    """A balance check failed. `available` is the balance that was seen."""

    status_code = 400

    def __init__(self, message: str, available: Decimal):
        super().__init__(message)
        self.available = available


class Internal(PocketBankError):
    """
    Unexpected database or runtime failure.

    Covers lock wait timeouts and schema drift. The original
    message stays in the logs; callers only see a generic one.
    """

    status_code = 500

    @property
    def public_message(self) -> str:
        return "Something went wrong while processing the request"
