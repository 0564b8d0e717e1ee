"""Error taxonomy shared by the ledger services.

Every error carries the HTTP status the API layer answers with, so route
handlers never translate service failures by hand.
"""


class LedgerError(RuntimeError):
    """Base class for failures raised by the ledger services."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message}


class ValidationError(LedgerError):
    """Raised when request input is missing or malformed."""

    status_code = 400


class AuthenticationError(LedgerError):
    """Raised when no valid login is present or credentials are wrong."""

    status_code = 401


class AuthorizationError(LedgerError):
    """Raised when the acting user's role does not allow the operation."""

    status_code = 403


class NotFoundError(LedgerError):
    """Raised when a referenced entity does not exist."""

    status_code = 404


class ConflictError(LedgerError):
    """Raised when the current state of the store forbids the operation."""

    status_code = 400


class InsufficientStockError(ConflictError):
    """Raised when a product has fewer units than requested."""

    def __init__(self, message: str = "Insufficient stock available"):
        super().__init__(message)


class InsufficientBalanceError(ConflictError):
    """Raised when a balance cannot cover a debit."""

    def __init__(self, message: str = "Insufficient balance"):
        super().__init__(message)


class InvalidCodeError(ConflictError):
    """Raised when a money code is unknown or already redeemed."""

    def __init__(self, message: str = "Invalid or already used code"):
        super().__init__(message)


class InternalError(LedgerError):
    """Raised when the database fails underneath an operation."""

    status_code = 500
