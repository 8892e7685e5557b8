"""Order and OrderItem records and the order status machine.

State Machine:
    PENDING → PAID → SHIPPED

PENDING only exists inside the unit of work that places the order: the
order is either committed as PAID or not committed at all. SHIPPED is
terminal. Status never moves backwards.

Each OrderItem snapshots the product's unit price at placement time. Later
price edits, or deleting the product, do not touch the snapshot.
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory.product import Product
from payments.transaction import Transaction
from shared.database import Base
from shared.errors import InvalidStateError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID},
    OrderStatus.PAID: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: set(),  # Terminal
}


def _now() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
class OrderItem(Base):
    """A line item: product reference, quantity, and the price snapshot."""

    __tablename__ = "order_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), index=True)
    product_id: Mapped[str | None] = mapped_column(ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
    quantity: Mapped[int] = mapped_column(Integer)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2))

    order: Mapped["Order"] = relationship(back_populates="items")
    product: Mapped[Product | None] = relationship()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product": {"id": self.product.id, "name": self.product.name} if self.product else None,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
        }


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
class Order(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    customer_id: Mapped[str] = mapped_column(String(255), index=True)
    status: Mapped[str] = mapped_column(String(20), default=OrderStatus.PENDING.value)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)

    items: Mapped[list[OrderItem]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by=OrderItem.position,
    )
    transactions: Mapped[list[Transaction]] = relationship(cascade="all, delete-orphan")

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS[current]:
            raise InvalidStateError(
                current.value,
                f"Cannot transition order from {current.value} to {target_status.value}",
            )

    def mark_paid(self) -> None:
        self._assert_can_transition(OrderStatus.PAID)
        self.status = OrderStatus.PAID.value

    def mark_shipped(self) -> None:
        if OrderStatus(self.status) != OrderStatus.PAID:
            raise InvalidStateError(
                self.status,
                f'Cannot ship order with status "{self.status}". Only PAID orders can be shipped.',
            )
        self._assert_can_transition(OrderStatus.SHIPPED)
        self.status = OrderStatus.SHIPPED.value

    # -------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------
    def to_dict(self, include_transactions: bool = False) -> dict:
        data = {
            "id": self.id,
            "customer_id": self.customer_id,
            "status": self.status,
            "total_amount": str(self.total_amount),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "items": [item.to_dict() for item in self.items],
        }
        if include_transactions:
            data["transactions"] = [txn.to_dict() for txn in self.transactions]
        return data
