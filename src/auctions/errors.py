"""
Auction errors: the failure taxonomy reported by every store operation.
"""


class AuctionError(Exception):
    """Base class for recoverable auction failures"""

    kind = "AuctionError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class ValidationError(AuctionError):
    """Raised for malformed identifiers, invalid status values or empty fields"""

    kind = "ValidationError"


class NotFoundError(AuctionError):
    """Raised when no auction exists at the given identifier"""

    kind = "NotFoundError"


class AuthorizationError(AuctionError):
    """Raised when the caller is not the auction owner"""

    kind = "AuthorizationError"


class StateError(AuctionError):
    """Raised when an operation conflicts with the auction's lifecycle state"""

    kind = "StateError"


class StorageFault(AuctionError):
    """Raised when the underlying ordered map fails unexpectedly"""

    kind = "StorageFault"
