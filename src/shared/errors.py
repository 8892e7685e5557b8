"""Error taxonomy shared by the order engine and its HTTP adapter.

Every error carries a stable ``kind`` and a human-readable ``message``.
Client errors describe a problem with the request; internal errors describe
a failure of the system and never expose detail beyond a generic message.

    kind                    severity   raised when
    ----------------------  ---------  -------------------------------------
    ValidationError         client     malformed or empty input
    NotFoundError           client     product or order absent
    InsufficientStockError  client     requested quantity exceeds stock
    ForbiddenError          client     role or ownership check failed
    InvalidStateError       client     transition from the wrong status
    PaymentFailedError      client     payment declined, all effects reverted
    InternalError           internal   storage failure, lock timeout, misuse
"""

from enum import Enum


class Severity(Enum):
    CLIENT = "client"
    INTERNAL = "internal"


class MarketplaceError(Exception):
    """Base class for all errors raised by the marketplace core."""

    kind = "MarketplaceError"
    severity = Severity.CLIENT

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class ValidationError(MarketplaceError):
    """Malformed input. Carries per-field messages like ``{"items": ["..."]}``."""

    kind = "ValidationError"

    def __init__(self, messages: dict[str, list[str]]) -> None:
        self.messages = messages
        super().__init__("; ".join(msg for field_msgs in messages.values() for msg in field_msgs))

    def to_dict(self) -> dict:
        return {**super().to_dict(), "errors": self.messages}


class NotFoundError(MarketplaceError):
    kind = "NotFoundError"


class InsufficientStockError(MarketplaceError):
    kind = "InsufficientStockError"

    def __init__(self, product_name: str, available: int, requested: int) -> None:
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(f'Insufficient stock for "{product_name}". Available: {available}, Requested: {requested}')

    def to_dict(self) -> dict:
        return {**super().to_dict(), "available": self.available, "requested": self.requested}


class ForbiddenError(MarketplaceError):
    kind = "ForbiddenError"


class InvalidStateError(MarketplaceError):
    kind = "InvalidStateError"

    def __init__(self, current_status: str, message: str | None = None) -> None:
        self.current_status = current_status
        super().__init__(message or f'Order is in status "{current_status}"')

    def to_dict(self) -> dict:
        return {**super().to_dict(), "current_status": self.current_status}


class PaymentFailedError(MarketplaceError):
    """The charge was declined. Stock, order and items were rolled back."""

    kind = "PaymentFailedError"

    def __init__(self, message: str = "Payment failed. Order has been cancelled.") -> None:
        super().__init__(message)


class InternalError(MarketplaceError):
    kind = "InternalError"
    severity = Severity.INTERNAL

    def __init__(self, message: str = "Internal Server Error") -> None:
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": "Internal Server Error"}


class LedgerMisuseError(InternalError):
    """A stock mutation was attempted outside the ledger's locking contract."""


class UnauthenticatedError(MarketplaceError):
    """No verified identity accompanied the request (HTTP boundary only)."""

    kind = "UnauthenticatedError"
