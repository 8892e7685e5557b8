"""Read-side queries over committed orders."""

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload, sessionmaker

from inventory.product import Product
from ordering.order.order import Order, OrderItem
from shared.identity import CustomerIdentity, SellerIdentity


def _with_details(stmt):
    return stmt.options(
        selectinload(Order.items).selectinload(OrderItem.product),
        selectinload(Order.transactions),
    ).order_by(Order.created_at.desc(), Order.id)


def orders_for_customer(session_factory: sessionmaker[Session], customer: CustomerIdentity) -> list[Order]:
    """The customer's orders, newest first."""
    with session_factory() as session:
        stmt = _with_details(select(Order).where(Order.customer_id == customer.id))
        return list(session.scalars(stmt))


def orders_for_seller(session_factory: sessionmaker[Session], seller: SellerIdentity) -> list[Order]:
    """Orders with at least one item whose product belongs to the seller, newest first."""
    with session_factory() as session:
        owned = (
            select(OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .where(Product.seller_id == seller.id)
        )
        stmt = _with_details(select(Order).where(Order.id.in_(owned)))
        return list(session.scalars(stmt))
