"""Order shipment: the fulfillment state machine.

A seller may move a PAID order to SHIPPED when at least one of the order's
items references a product the seller owns. One such item authorizes
shipping the whole order; there is no per-item fulfillment.

Checks run in this order, each failing with its own error:
    order exists            -> NotFoundError
    seller owns an item     -> ForbiddenError
    order is PAID           -> InvalidStateError (names the current status)

The order row is locked for the whole check-then-update, so two concurrent
ship requests cannot both see PAID.
"""

import structlog
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload, sessionmaker

from inventory.product import Product
from ordering.order.order import Order, OrderItem
from shared.database import unit_of_work
from shared.errors import ForbiddenError, MarketplaceError, NotFoundError
from shared.identity import SellerIdentity, require_seller

logger = structlog.get_logger(__name__)


def _owns_an_item(session: Session, seller: SellerIdentity, order_id: str) -> bool:
    owned = session.scalar(
        select(func.count())
        .select_from(OrderItem)
        .join(Product, Product.id == OrderItem.product_id)
        .where(OrderItem.order_id == order_id, Product.seller_id == seller.id)
    )
    return bool(owned)


class OrderFulfillment:
    def __init__(self, session_factory: sessionmaker[Session], lock_timeout_ms: int | None = None) -> None:
        self._session_factory = session_factory
        self._lock_timeout_ms = lock_timeout_ms

    def ship(self, seller: SellerIdentity, order_id: str) -> Order:
        """Mark the order SHIPPED. Returns the updated order with its items."""
        seller = require_seller(seller)
        log = logger.bind(seller_id=seller.id, order_id=order_id)

        try:
            with unit_of_work(self._session_factory, self._lock_timeout_ms) as session:
                order = session.scalars(
                    select(Order)
                    .where(Order.id == order_id)
                    .options(selectinload(Order.items).selectinload(OrderItem.product))
                    .with_for_update()
                ).one_or_none()
                if order is None:
                    raise NotFoundError("Order not found")

                if not _owns_an_item(session, seller, order.id):
                    raise ForbiddenError("Forbidden. This order does not contain your products.")

                order.mark_shipped()
        except MarketplaceError as exc:
            log.info("ship_rejected", kind=exc.kind, reason=exc.message)
            raise

        log.info("order_shipped")
        return order
