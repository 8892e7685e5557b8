"""Pydantic request schemas for the Ordering API.

These are external contracts (anti-corruption layer). Business validation
(empty item lists, non-positive quantities) stays in the coordinator so the
HTTP and in-process callers get identical errors.
"""

from pydantic import BaseModel


class LineItemSchema(BaseModel):
    product_id: str
    quantity: int


class CreateOrderRequest(BaseModel):
    items: list[LineItemSchema] | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [
                        {"product_id": "3f1c2a9e-5d1b-4c1e-9a53-0c2d5b6f7a10", "quantity": 3},
                    ]
                }
            ]
        }
    }
