"""FastAPI routes for the Fulfillment domain — seller order views and shipping."""

from fastapi import APIRouter, Depends

from ordering.order.queries import orders_for_seller
from shared.api import current_seller, services
from shared.identity import SellerIdentity

seller_router = APIRouter(prefix="/api/seller", tags=["seller"])


@seller_router.get("/orders")
def list_seller_orders(
    seller: SellerIdentity = Depends(current_seller),
    svc=Depends(services),
) -> dict:
    orders = orders_for_seller(svc.session_factory, seller)
    return {"success": True, "data": [order.to_dict(include_transactions=True) for order in orders]}


@seller_router.patch("/orders/{order_id}/ship")
def ship_order(
    order_id: str,
    seller: SellerIdentity = Depends(current_seller),
    svc=Depends(services),
) -> dict:
    order = svc.fulfillment.ship(seller, order_id)
    return {"success": True, "status": order.status, "data": order.to_dict()}
