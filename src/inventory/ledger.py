"""Inventory ledger: locked reads and stock decrements.

A ledger is bound to one unit of work. ``lock_and_read`` issues
``SELECT ... FOR UPDATE`` for the product row, blocking until any competing
transaction holding the same row commits or rolls back. ``decrement`` may
only touch rows this ledger has locked. Locks belong to the database
transaction, so they are released when the unit of work ends, whichever way
it ends.

Callers that lock several products must do so in a deterministic order
(``lock_all`` sorts by product id) so two orders sharing products cannot
deadlock on each other.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory.product import Product
from shared.errors import LedgerMisuseError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LockedProduct:
    """Read-only view of a product row held under lock."""

    id: str
    seller_id: str
    name: str
    price: Decimal
    stock_quantity: int


class InventoryLedger:
    def __init__(self, session: Session) -> None:
        self._session = session
        self._locked: dict[str, Product] = {}

    def _snapshot(self, product: Product) -> LockedProduct:
        return LockedProduct(
            id=product.id,
            seller_id=product.seller_id,
            name=product.name,
            price=product.price,
            stock_quantity=product.stock_quantity,
        )

    def lock_and_read(self, product_id: str) -> LockedProduct | None:
        """Lock the product row and return its current state, or None if absent."""
        product = self._locked.get(product_id)
        if product is None:
            product = self._session.scalars(
                select(Product).where(Product.id == product_id).with_for_update()
            ).one_or_none()
            if product is None:
                return None
            self._locked[product_id] = product
        return self._snapshot(product)

    def lock_all(self, product_ids: Iterable[str]) -> dict[str, LockedProduct | None]:
        """Lock each distinct product once, in ascending id order."""
        return {product_id: self.lock_and_read(product_id) for product_id in sorted(set(product_ids))}

    def decrement(self, product_id: str, amount: int) -> int:
        """Take ``amount`` units out of a locked product. Returns the new stock.

        The caller must already have verified that stock suffices; a request
        that would go below zero is a bug, not a business outcome.
        """
        product = self._locked.get(product_id)
        if product is None:
            raise LedgerMisuseError(f"Product {product_id} must be locked before its stock is decremented")
        if amount <= 0:
            raise LedgerMisuseError(f"Decrement amount must be positive, got {amount}")
        if product.stock_quantity < amount:
            raise LedgerMisuseError(
                f"Decrement of {amount} would take product {product_id} below zero "
                f"(stock {product.stock_quantity})"
            )

        product.stock_quantity -= amount
        logger.debug(
            "stock_decremented",
            product_id=product_id,
            amount=amount,
            new_stock=product.stock_quantity,
        )
        return product.stock_quantity
