"""Application tests for order placement through the transaction coordinator."""

from decimal import Decimal

import pytest
from ordering.order.order import Order, OrderStatus
from payments.transaction import Transaction
from shared.errors import (
    ForbiddenError,
    InsufficientStockError,
    NotFoundError,
    PaymentFailedError,
    ValidationError,
)
from shared.identity import SellerIdentity


def _line(product_id, quantity):
    return {"product_id": product_id, "quantity": quantity}


class TestSuccessfulPlacement:
    def test_paid_order_with_transaction(self, coordinator, customer, make_product, db):
        product_id = make_product(price="25.00", stock=10)

        order = coordinator.create_order(customer, [_line(product_id, 3)])

        assert order.status == OrderStatus.PAID.value
        assert order.total_amount == Decimal("75.00")
        assert order.customer_id == customer.id
        assert db.stock_of(product_id) == 7

        transactions = db.transactions_for(order.id)
        assert len(transactions) == 1
        assert transactions[0].status == "SUCCESS"
        assert transactions[0].provider == "DummyPay"
        assert transactions[0].amount == Decimal("75.00")

    def test_returned_order_carries_items_and_transaction(self, coordinator, customer, make_product):
        product_id = make_product(price="25.00")

        data = coordinator.create_order(customer, [_line(product_id, 2)]).to_dict(include_transactions=True)

        assert data["status"] == "PAID"
        assert data["total_amount"] == "50.00"
        assert data["items"] == [
            {
                "id": data["items"][0]["id"],
                "order_id": data["id"],
                "product_id": product_id,
                "quantity": 2,
                "unit_price": "25.00",
                "product": {"id": product_id, "name": "Widget"},
            }
        ]
        assert data["transactions"][0]["amount"] == "50.00"

    def test_ordering_exactly_the_stock_on_hand(self, coordinator, customer, make_product, db):
        product_id = make_product(stock=4)

        coordinator.create_order(customer, [_line(product_id, 4)])

        assert db.stock_of(product_id) == 0

    def test_total_is_exact_sum_of_lines(self, coordinator, customer, make_product, payment_provider):
        first = make_product(name="Lamp", price="19.99")
        second = make_product(name="Bulb", price="5.01")

        order = coordinator.create_order(customer, [_line(first, 3), _line(second, 2)])

        assert order.total_amount == Decimal("69.99")
        assert payment_provider.charges == [Decimal("69.99")]

    def test_items_keep_the_callers_order(self, coordinator, customer, make_product, db):
        first = make_product(name="Lamp")
        second = make_product(name="Bulb")

        order = coordinator.create_order(customer, [_line(second, 1), _line(first, 2)])

        stored = db.order(order.id)
        assert [item.product_id for item in stored.items] == [second, first]
        assert [item.quantity for item in stored.items] == [1, 2]

    def test_products_of_several_sellers_in_one_order(self, coordinator, customer, make_product, db):
        first = make_product(seller_id="seller-a", price="10.00")
        second = make_product(seller_id="seller-b", price="20.00")

        order = coordinator.create_order(customer, [_line(first, 1), _line(second, 1)])

        assert order.total_amount == Decimal("30.00")
        assert db.stock_of(first) == 9
        assert db.stock_of(second) == 9


class TestPriceSnapshot:
    def test_repricing_does_not_touch_existing_items(self, coordinator, customer, make_product, db):
        product_id = make_product(price="25.00")
        order = coordinator.create_order(customer, [_line(product_id, 1)])

        db.reprice(product_id, "30.00")
        later = coordinator.create_order(customer, [_line(product_id, 1)])

        assert db.order(order.id).items[0].unit_price == Decimal("25.00")
        assert db.order(order.id).total_amount == Decimal("25.00")
        assert later.items[0].unit_price == Decimal("30.00")

    def test_deleting_the_product_keeps_the_item(self, coordinator, customer, make_product, db):
        product_id = make_product(price="25.00")
        order = coordinator.create_order(customer, [_line(product_id, 2)])

        db.delete_product(product_id)

        item = db.order(order.id).items[0]
        assert item.product_id is None
        assert item.unit_price == Decimal("25.00")
        assert item.quantity == 2


class TestRejectedPlacement:
    def test_insufficient_stock_leaves_nothing_behind(self, coordinator, customer, make_product, db):
        product_id = make_product(name="Widget", stock=7)

        with pytest.raises(InsufficientStockError) as exc:
            coordinator.create_order(customer, [_line(product_id, 20)])

        assert exc.value.message == 'Insufficient stock for "Widget". Available: 7, Requested: 20'
        assert db.stock_of(product_id) == 7
        assert db.count(Order) == 0

    def test_declined_payment_reverts_everything(self, coordinator, customer, make_product, payment_provider, db):
        product_id = make_product(price="25.00", stock=7)
        payment_provider.configure(False)

        with pytest.raises(PaymentFailedError, match="Payment failed. Order has been cancelled."):
            coordinator.create_order(customer, [_line(product_id, 2)])

        assert payment_provider.charges == [Decimal("50.00")]
        assert db.stock_of(product_id) == 7
        assert db.count(Order) == 0
        assert db.count(Transaction) == 0

    def test_unknown_product(self, coordinator, customer, payment_provider):
        with pytest.raises(NotFoundError, match="Product prod-missing not found"):
            coordinator.create_order(customer, [_line("prod-missing", 1)])
        assert payment_provider.charges == []

    def test_later_line_failure_reverts_earlier_lines(self, coordinator, customer, make_product, db):
        plenty = make_product(name="Lamp", stock=10)
        scarce = make_product(name="Bulb", stock=1)

        with pytest.raises(InsufficientStockError):
            coordinator.create_order(customer, [_line(plenty, 2), _line(scarce, 5)])

        assert db.stock_of(plenty) == 10
        assert db.stock_of(scarce) == 1
        assert db.count(Order) == 0

    def test_first_failing_line_in_caller_order_wins(self, coordinator, customer, make_product):
        scarce = make_product(name="Bulb", stock=1)

        with pytest.raises(NotFoundError):
            coordinator.create_order(customer, [_line("prod-missing", 1), _line(scarce, 5)])
        with pytest.raises(InsufficientStockError):
            coordinator.create_order(customer, [_line(scarce, 5), _line("prod-missing", 1)])

    def test_invalid_items_rejected_before_any_work(self, coordinator, customer, payment_provider, db):
        with pytest.raises(ValidationError):
            coordinator.create_order(customer, [])
        with pytest.raises(ValidationError):
            coordinator.create_order(customer, [{"product_id": "prod-001", "quantity": 0}])

        assert payment_provider.charges == []
        assert db.count(Order) == 0

    def test_sellers_cannot_place_orders(self, coordinator, make_product):
        product_id = make_product()
        with pytest.raises(ForbiddenError):
            coordinator.create_order(SellerIdentity(id="seller-a"), [_line(product_id, 1)])


class TestDuplicateProductLines:
    def test_lines_are_sequential_claims(self, coordinator, customer, make_product, db):
        product_id = make_product(stock=5)

        order = coordinator.create_order(customer, [_line(product_id, 2), _line(product_id, 3)])

        assert db.stock_of(product_id) == 0
        assert [item.quantity for item in order.items] == [2, 3]

    def test_second_claim_sees_what_the_first_left(self, coordinator, customer, make_product, db):
        product_id = make_product(name="Widget", stock=5)

        with pytest.raises(InsufficientStockError) as exc:
            coordinator.create_order(customer, [_line(product_id, 3), _line(product_id, 3)])

        assert exc.value.available == 2
        assert exc.value.requested == 3
        assert db.stock_of(product_id) == 5
