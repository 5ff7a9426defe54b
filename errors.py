"""
Error kinds raised by the finance engines.

Each error carries the HTTP status the API layer answers with, so request
handlers don't need their own mapping table.
"""


class FinanceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidUser(FinanceError):
    """Malformed user identifier. Raised before any query reaches the store."""

    status_code = 400

    def __init__(self, message: str = "Invalid user ID format."):
        super().__init__(message)


class InvalidTimeWindow(FinanceError):
    status_code = 400


class ValidationError(FinanceError):
    """Caller supplied a date, amount or limit that can't be parsed."""

    status_code = 422


class StoreUnavailable(FinanceError):
    """The transaction store failed or timed out. Safe to retry."""

    status_code = 503


class TransactionNotFound(FinanceError):
    status_code = 404

    def __init__(self, message: str = "Transaction not found or user not authorized."):
        super().__init__(message)
