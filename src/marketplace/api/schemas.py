"""Pydantic request/response schemas for the marketplace API.

These are external contracts, kept separate from the internal protean
commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    name: str
    unit_price: float = Field(ge=0)
    seller_id: str
    image: str | None = None
    quantity: int = Field(ge=1, default=1)
    expected_revision: int | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "name": "Engineering Mathematics, 5th ed.",
                    "unit_price": 4500.0,
                    "seller_id": "seller-001",
                    "quantity": 1,
                }
            ]
        }
    }


class SetQuantityRequest(BaseModel):
    # Values below 1 are clamped to 1 by the cart
    quantity: int
    expected_revision: int | None = None


class SetSelectionRequest(BaseModel):
    selected: bool = True
    expected_revision: int | None = None


class RevisionRequest(BaseModel):
    expected_revision: int | None = None


class CartLineResponse(BaseModel):
    product_id: str
    name: str
    unit_price: float
    image: str | None = None
    quantity: int
    seller_id: str
    selected: bool


class CartResponse(BaseModel):
    user_id: str
    revision: int
    lines: list[CartLineResponse]
    total: float
    selected_subtotal: float


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class GeoPointSchema(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class CheckoutRequest(BaseModel):
    buyer_name: str | None = None
    payment_method: str
    delivery_method: str = "rider"
    delivery_address: str | None = None
    dropoff_location: GeoPointSchema | None = None
    pickup_locations: dict[str, GeoPointSchema] = Field(default_factory=dict)
    expected_revision: int | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "buyer_name": "Ada",
                    "payment_method": "card",
                    "delivery_method": "rider",
                    "delivery_address": "Room 12, Moremi Hall",
                }
            ]
        }
    }


class BuyNowRequest(BaseModel):
    buyer_name: str | None = None
    product_id: str
    name: str
    unit_price: float = Field(ge=0)
    seller_id: str
    quantity: int = Field(ge=1, default=1)
    payment_method: str
    delivery_method: str = "rider"
    delivery_address: str | None = None
    dropoff_location: GeoPointSchema | None = None
    pickup_location: GeoPointSchema | None = None


class OrderIdResponse(BaseModel):
    order_id: str


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class AssignRiderRequest(BaseModel):
    rider_name: str
    rider_phone: str | None = None


class RecordDeliveryRequest(BaseModel):
    confirmation_code: str


class ReceiptItemSchema(BaseModel):
    product_id: str
    title: str
    unit_price: float
    quantity: int
    seller_id: str


class ReceiptResponse(BaseModel):
    order_id: str
    buyer_id: str
    source: str | None = None
    status: str
    status_index: int
    items: list[ReceiptItemSchema]
    subtotal: float
    tax: float
    total: float
    currency: str
    payment_method: str | None = None
    delivery_method: str | None = None
    delivery_address: str | None = None
    confirmation_code: str | None = None
    rider_name: str | None = None
    rider_phone: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Merchants and products
# ---------------------------------------------------------------------------
class NotificationResponse(BaseModel):
    id: str
    order_id: str
    message: str
    kind: str
    read: bool
    created_at: datetime | None = None


class BalanceResponse(BaseModel):
    seller_id: str
    pending_balance: float
    available_balance: float


class SalesSummaryResponse(BaseModel):
    product_id: str
    total_sales: int
    total_revenue: float
    unique_buyers: int


class StatusResponse(BaseModel):
    status: str = "ok"
