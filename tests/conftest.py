import os
from dataclasses import replace
from decimal import Decimal
from pathlib import Path

import pytest
from app import create_app
from fastapi.testclient import TestClient
from fulfillment.shipment import OrderFulfillment
from inventory.product import Product
from ordering.order.creation import OrderTransactionCoordinator
from ordering.order.order import Order
from payments.gateway import FixedOutcomeProvider
from payments.transaction import Transaction
from shared.config import load_settings
from shared.database import create_engine_for, drop_db, make_session_factory, setup_db, unit_of_work
from shared.identity import CustomerIdentity, SellerIdentity
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------
@pytest.fixture()
def settings(tmp_path):
    """Test settings on a fresh SQLite file, or TEST_DATABASE_URL when set."""
    uri = os.getenv("TEST_DATABASE_URL") or f"sqlite:///{tmp_path / 'marketplace.db'}"
    return replace(load_settings("test"), database_uri=uri)


@pytest.fixture()
def engine(settings):
    engine = create_engine_for(settings)
    setup_db(engine)
    yield engine
    drop_db(engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


class DatabaseProbe:
    """Reads and out-of-band writes used by tests to check committed state."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def stock_of(self, product_id: str) -> int:
        with self._session_factory() as session:
            return session.get(Product, product_id).stock_quantity

    def count(self, model) -> int:
        with self._session_factory() as session:
            return session.scalar(select(func.count()).select_from(model))

    def order(self, order_id: str) -> Order | None:
        with self._session_factory() as session:
            return session.scalars(
                select(Order)
                .where(Order.id == order_id)
                .options(selectinload(Order.items), selectinload(Order.transactions))
            ).one_or_none()

    def transactions_for(self, order_id: str) -> list[Transaction]:
        with self._session_factory() as session:
            return list(session.scalars(select(Transaction).where(Transaction.order_id == order_id)))

    def reprice(self, product_id: str, price: str) -> None:
        with unit_of_work(self._session_factory) as session:
            session.get(Product, product_id).price = Decimal(price)

    def delete_product(self, product_id: str) -> None:
        with unit_of_work(self._session_factory) as session:
            session.delete(session.get(Product, product_id))


@pytest.fixture()
def db(session_factory):
    return DatabaseProbe(session_factory)


@pytest.fixture()
def make_product(session_factory):
    """Insert a product the way the catalogue would. Returns its id."""

    def _make(seller_id="seller-a", name="Widget", price="25.00", stock=10) -> str:
        with unit_of_work(session_factory) as session:
            product = Product(seller_id=seller_id, name=name, price=Decimal(price), stock_quantity=stock)
            session.add(product)
            session.flush()
            return product.id

    return _make


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------
@pytest.fixture()
def payment_provider():
    return FixedOutcomeProvider(succeeded=True)


@pytest.fixture()
def coordinator(session_factory, payment_provider):
    return OrderTransactionCoordinator(session_factory, payment_provider)


@pytest.fixture()
def fulfillment(session_factory):
    return OrderFulfillment(session_factory)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------
@pytest.fixture()
def client(settings, engine, payment_provider):
    """TestClient over the full application, sharing the test database."""
    app = create_app(settings, payment_provider=payment_provider, engine=engine)
    return TestClient(app)


# ---------------------------------------------------------------------------
# Identities
# ---------------------------------------------------------------------------
@pytest.fixture()
def customer():
    return CustomerIdentity(id="cust-001")


@pytest.fixture()
def seller_a():
    return SellerIdentity(id="seller-a")


@pytest.fixture()
def seller_b():
    return SellerIdentity(id="seller-b")
