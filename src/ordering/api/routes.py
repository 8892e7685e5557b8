"""FastAPI routes for the Ordering domain — customer orders.

Handlers are plain ``def`` so FastAPI runs each request on its own worker
thread; placing an order may block on a product row lock.
"""

from fastapi import APIRouter, Depends

from ordering.api.schemas import CreateOrderRequest
from ordering.order.queries import orders_for_customer
from shared.api import current_customer, services
from shared.identity import CustomerIdentity

order_router = APIRouter(prefix="/api/orders", tags=["orders"])


@order_router.post("", status_code=201)
def create_order(
    body: CreateOrderRequest,
    customer: CustomerIdentity = Depends(current_customer),
    svc=Depends(services),
) -> dict:
    order = svc.coordinator.create_order(customer, [item.model_dump() for item in body.items or []])
    return {"success": True, "status": order.status, "data": order.to_dict(include_transactions=True)}


@order_router.get("")
def list_my_orders(
    customer: CustomerIdentity = Depends(current_customer),
    svc=Depends(services),
) -> dict:
    orders = orders_for_customer(svc.session_factory, customer)
    return {"success": True, "data": [order.to_dict(include_transactions=True) for order in orders]}
