"""Caller identities.

The auth layer hands the core an already-verified ``{id, role}`` assertion.
It is converted once, at the boundary, into one of two variants. Core
operations take the variant they need as a typed parameter instead of
inspecting a role string.
"""

from dataclasses import dataclass
from enum import Enum

from shared.errors import ForbiddenError, ValidationError


class Role(Enum):
    CUSTOMER = "CUSTOMER"
    SELLER = "SELLER"


@dataclass(frozen=True)
class CustomerIdentity:
    id: str

    @property
    def role(self) -> Role:
        return Role.CUSTOMER


@dataclass(frozen=True)
class SellerIdentity:
    id: str

    @property
    def role(self) -> Role:
        return Role.SELLER


Identity = CustomerIdentity | SellerIdentity


def identity_from_assertion(user_id: str, role: str) -> Identity:
    """Build the identity variant for a verified assertion."""
    if not user_id:
        raise ValidationError({"id": ["Identity id is required"]})
    try:
        parsed = Role(role)
    except ValueError:
        raise ValidationError({"role": [f"Unknown role: {role}"]}) from None

    if parsed is Role.CUSTOMER:
        return CustomerIdentity(id=str(user_id))
    return SellerIdentity(id=str(user_id))


def require_customer(identity: Identity) -> CustomerIdentity:
    if not isinstance(identity, CustomerIdentity):
        raise ForbiddenError("Forbidden. Customer access only.")
    return identity


def require_seller(identity: Identity) -> SellerIdentity:
    if not isinstance(identity, SellerIdentity):
        raise ForbiddenError("Forbidden. Seller access only.")
    return identity
