"""Order creation: the order transaction coordinator.

Turns a customer's line items into a committed, paid order in one unit of
work:

    1. validate the request (no locks taken yet)
    2. lock every referenced product row, in ascending product id order
    3. verify stock for each line, in the order the customer gave them
    4. decrement stock and snapshot unit prices into order items
    5. persist the order as PENDING
    6. charge the total; on success mark PAID and record the transaction,
       on decline raise PaymentFailedError

Any error in any step rolls the whole unit of work back: stock, order, items
and transaction either all commit together or none of them do.

Several lines may name the same product. They are treated as independent
sequential claims: each is checked against the stock left over by the lines
before it, then decremented separately.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal

import structlog
from sqlalchemy.orm import Session, sessionmaker

from inventory.ledger import InventoryLedger
from inventory.product import Product
from ordering.order.order import Order, OrderItem, OrderStatus
from payments.gateway.port import PaymentOutcomeProvider
from payments.transaction import Transaction, TransactionStatus
from shared.database import unit_of_work
from shared.errors import (
    InsufficientStockError,
    MarketplaceError,
    NotFoundError,
    PaymentFailedError,
    ValidationError,
)
from shared.identity import CustomerIdentity, require_customer
from shared.money import line_total, to_money

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LineItemRequest:
    product_id: str
    quantity: int


def _parse_line(index: int, raw) -> LineItemRequest:
    if isinstance(raw, LineItemRequest):
        product_id, quantity = raw.product_id, raw.quantity
    elif isinstance(raw, Mapping):
        product_id, quantity = raw.get("product_id"), raw.get("quantity")
    else:
        product_id, quantity = None, None

    valid_quantity = isinstance(quantity, int) and not isinstance(quantity, bool) and quantity > 0
    if not product_id or not isinstance(product_id, str) or not valid_quantity:
        raise ValidationError(
            {"items": [f"Item {index}: each item must have a valid product_id and positive quantity"]}
        )
    return LineItemRequest(product_id=product_id, quantity=quantity)


def parse_line_items(items) -> list[LineItemRequest]:
    """Validate the raw request. Raises ValidationError on the first bad entry."""
    if not isinstance(items, Sequence) or isinstance(items, str | bytes) or len(items) == 0:
        raise ValidationError({"items": ["Items array is required and must not be empty"]})
    return [_parse_line(index, raw) for index, raw in enumerate(items)]


class OrderTransactionCoordinator:
    """Places orders. The payment provider is injected, never looked up globally."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        payment_provider: PaymentOutcomeProvider,
        lock_timeout_ms: int | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._payment_provider = payment_provider
        self._lock_timeout_ms = lock_timeout_ms

    def create_order(self, customer: CustomerIdentity, items) -> Order:
        """Create, pay for, and commit an order. Returns the PAID order with items."""
        customer = require_customer(customer)
        lines = parse_line_items(items)
        log = logger.bind(customer_id=customer.id, line_count=len(lines))

        try:
            with unit_of_work(self._session_factory, self._lock_timeout_ms) as session:
                order = self._place(session, customer, lines)
        except PaymentFailedError:
            log.warning("payment_declined")
            raise
        except MarketplaceError as exc:
            log.info("order_rejected", kind=exc.kind, reason=exc.message)
            raise

        log.info("order_placed", order_id=order.id, total_amount=str(order.total_amount))
        return order

    def _place(self, session: Session, customer: CustomerIdentity, lines: list[LineItemRequest]) -> Order:
        ledger = InventoryLedger(session)
        locked = ledger.lock_all(line.product_id for line in lines)

        # Verify every line before any stock moves
        remaining = {pid: product.stock_quantity for pid, product in locked.items() if product is not None}
        for line in lines:
            product = locked[line.product_id]
            if product is None:
                raise NotFoundError(f"Product {line.product_id} not found")
            if remaining[line.product_id] < line.quantity:
                raise InsufficientStockError(
                    product_name=product.name,
                    available=remaining[line.product_id],
                    requested=line.quantity,
                )
            remaining[line.product_id] -= line.quantity

        total = Decimal("0.00")
        order_items = []
        for position, line in enumerate(lines):
            product = locked[line.product_id]
            ledger.decrement(line.product_id, line.quantity)
            unit_price = to_money(product.price)
            total += line_total(unit_price, line.quantity)
            order_items.append(
                OrderItem(
                    product_id=line.product_id,
                    # Already in the identity map from the locked read
                    product=session.get(Product, line.product_id),
                    position=position,
                    quantity=line.quantity,
                    unit_price=unit_price,
                )
            )

        order = Order(
            customer_id=customer.id,
            status=OrderStatus.PENDING.value,
            total_amount=to_money(total),
            items=order_items,
        )
        session.add(order)
        session.flush()

        outcome = self._payment_provider.charge(order.total_amount)
        if not outcome.succeeded:
            raise PaymentFailedError()

        order.mark_paid()
        order.transactions.append(
            Transaction(
                amount=order.total_amount,
                status=TransactionStatus.SUCCESS.value,
                provider=outcome.provider,
            )
        )
        return order
