"""Shared BDD fixtures and step definitions for the Ordering domain."""

import pytest
from pytest_bdd import given, parsers


@pytest.fixture()
def products():
    """Product ids by name, filled in by Given steps."""
    return {}


@given(parsers.cfparse('a product "{name}" priced {price} with {stock:d} units in stock sold by "{seller}"'))
def _(products, make_product, name, price, stock, seller):
    products[name] = make_product(seller_id=seller, name=name, price=price, stock=stock)


@given("payments are approved")
def _(payment_provider):
    payment_provider.configure(True)


@given("payments are declined")
def _(payment_provider):
    payment_provider.configure(False)
