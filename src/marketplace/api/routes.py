"""FastAPI routes for the marketplace — cart, checkout, orders and sellers.

The caller is identified by the ``X-User-Id`` header set by the upstream
auth gateway.
"""

import json

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.api.schemas import (
    AddToCartRequest,
    AssignRiderRequest,
    BalanceResponse,
    BuyNowRequest,
    CartResponse,
    CheckoutRequest,
    NotificationResponse,
    OrderIdResponse,
    ReceiptResponse,
    RecordDeliveryRequest,
    RevisionRequest,
    SalesSummaryResponse,
    SetQuantityRequest,
    SetSelectionRequest,
    StatusResponse,
)
from marketplace.cart.cart import ShoppingCart
from marketplace.cart.items import AddToCart, RemoveFromCart, SetCartQuantity
from marketplace.cart.management import ClearCart, OpenCart
from marketplace.cart.selection import SetAllSelection, ToggleSelection
from marketplace.checkout.submission import BuyNow, CheckoutCart
from marketplace.notification.notification import notifications_for
from marketplace.order.delivery import AssignRider, ConfirmReceipt, RecordDelivery, StartTransit
from marketplace.payment.payment import MerchantBalance
from marketplace.projections.receipt_view import ReceiptView, active_dispatches, receipts_for
from marketplace.sales.sale import sales_summary

logger = structlog.get_logger(__name__)


def current_user(x_user_id: str | None = Header(default=None)) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id


def _cart_response(user_id: str) -> CartResponse:
    cart = current_domain.repository_for(ShoppingCart).get(user_id)
    return CartResponse(**cart.to_dict())


def _receipt_response(receipt) -> ReceiptResponse:
    items = json.loads(receipt.items) if isinstance(receipt.items, str) else []
    return ReceiptResponse(
        order_id=str(receipt.order_id),
        buyer_id=str(receipt.buyer_id),
        source=receipt.source,
        status=receipt.status,
        status_index=receipt.status_index or 0,
        items=[
            {
                "product_id": item["product_id"],
                "title": item["title"],
                "unit_price": item["unit_price"],
                "quantity": item["quantity"],
                "seller_id": item["seller_id"],
            }
            for item in items
        ],
        subtotal=receipt.subtotal,
        tax=receipt.tax,
        total=receipt.total,
        currency=receipt.currency or "NGN",
        payment_method=receipt.payment_method,
        delivery_method=receipt.delivery_method,
        delivery_address=receipt.delivery_address,
        confirmation_code=receipt.confirmation_code,
        rider_name=receipt.rider_name,
        rider_phone=receipt.rider_phone,
        created_at=receipt.created_at,
        updated_at=receipt.updated_at,
    )


def _point_fields(prefix, point):
    if point is None:
        return {}
    return {f"{prefix}_latitude": point.latitude, f"{prefix}_longitude": point.longitude}


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(user_id: str = Depends(current_user)) -> CartResponse:
    current_domain.process(OpenCart(user_id=user_id), asynchronous=False)
    return _cart_response(user_id)


@cart_router.post("/items", response_model=CartResponse)
async def add_to_cart(body: AddToCartRequest, user_id: str = Depends(current_user)) -> CartResponse:
    command = AddToCart(
        user_id=user_id,
        product_id=body.product_id,
        name=body.name,
        unit_price=body.unit_price,
        seller_id=body.seller_id,
        image=body.image,
        quantity=body.quantity,
        expected_revision=body.expected_revision,
    )
    current_domain.process(command, asynchronous=False)
    return _cart_response(user_id)


@cart_router.put("/items/{product_id}", response_model=CartResponse)
async def set_cart_quantity(
    product_id: str, body: SetQuantityRequest, user_id: str = Depends(current_user)
) -> CartResponse:
    command = SetCartQuantity(
        user_id=user_id,
        product_id=product_id,
        quantity=body.quantity,
        expected_revision=body.expected_revision,
    )
    current_domain.process(command, asynchronous=False)
    return _cart_response(user_id)


@cart_router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_from_cart(
    product_id: str, expected_revision: int | None = None, user_id: str = Depends(current_user)
) -> CartResponse:
    command = RemoveFromCart(user_id=user_id, product_id=product_id, expected_revision=expected_revision)
    current_domain.process(command, asynchronous=False)
    return _cart_response(user_id)


@cart_router.post("/items/{product_id}/toggle", response_model=CartResponse)
async def toggle_selection(
    product_id: str, body: RevisionRequest | None = None, user_id: str = Depends(current_user)
) -> CartResponse:
    command = ToggleSelection(
        user_id=user_id,
        product_id=product_id,
        expected_revision=body.expected_revision if body else None,
    )
    current_domain.process(command, asynchronous=False)
    return _cart_response(user_id)


@cart_router.put("/selection", response_model=CartResponse)
async def set_all_selection(body: SetSelectionRequest, user_id: str = Depends(current_user)) -> CartResponse:
    command = SetAllSelection(user_id=user_id, selected=body.selected, expected_revision=body.expected_revision)
    current_domain.process(command, asynchronous=False)
    return _cart_response(user_id)


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(expected_revision: int | None = None, user_id: str = Depends(current_user)) -> CartResponse:
    current_domain.process(ClearCart(user_id=user_id, expected_revision=expected_revision), asynchronous=False)
    return _cart_response(user_id)


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=OrderIdResponse)
async def checkout_cart(body: CheckoutRequest, user_id: str = Depends(current_user)) -> OrderIdResponse:
    command = CheckoutCart(
        buyer_id=user_id,
        buyer_name=body.buyer_name,
        payment_method=body.payment_method,
        delivery_method=body.delivery_method,
        delivery_address=body.delivery_address,
        pickup_locations=json.dumps(
            {seller_id: point.model_dump() for seller_id, point in body.pickup_locations.items()}
        ),
        expected_revision=body.expected_revision,
        **_point_fields("dropoff", body.dropoff_location),
    )
    order_id = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=order_id)


@checkout_router.post("/buy-now", status_code=201, response_model=OrderIdResponse)
async def buy_now(body: BuyNowRequest, user_id: str = Depends(current_user)) -> OrderIdResponse:
    command = BuyNow(
        buyer_id=user_id,
        buyer_name=body.buyer_name,
        product_id=body.product_id,
        name=body.name,
        unit_price=body.unit_price,
        seller_id=body.seller_id,
        quantity=body.quantity,
        payment_method=body.payment_method,
        delivery_method=body.delivery_method,
        delivery_address=body.delivery_address,
        **_point_fields("dropoff", body.dropoff_location),
        **_point_fields("pickup", body.pickup_location),
    )
    order_id = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=order_id)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=list[ReceiptResponse])
async def list_receipts(user_id: str = Depends(current_user)) -> list[ReceiptResponse]:
    return [_receipt_response(receipt) for receipt in receipts_for(user_id)]


@order_router.get("/active", response_model=list[ReceiptResponse])
async def list_active_dispatches(user_id: str = Depends(current_user)) -> list[ReceiptResponse]:
    return [_receipt_response(receipt) for receipt in active_dispatches(user_id)]


@order_router.get("/{order_id}", response_model=ReceiptResponse)
async def get_receipt(order_id: str, user_id: str = Depends(current_user)) -> ReceiptResponse:
    receipt = current_domain.repository_for(ReceiptView).get(order_id)
    if str(receipt.buyer_id) != user_id:
        raise ObjectNotFoundError(f"Order {order_id} does not exist")
    return _receipt_response(receipt)


@order_router.post("/{order_id}/rider", response_model=StatusResponse)
async def assign_rider(
    order_id: str, body: AssignRiderRequest, user_id: str = Depends(current_user)
) -> StatusResponse:
    logger.info("Assigning rider", order_id=order_id, user_id=user_id)
    command = AssignRider(order_id=order_id, rider_name=body.rider_name, rider_phone=body.rider_phone)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/transit", response_model=StatusResponse)
async def start_transit(order_id: str, user_id: str = Depends(current_user)) -> StatusResponse:
    logger.info("Starting transit", order_id=order_id, user_id=user_id)
    current_domain.process(StartTransit(order_id=order_id), asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/delivery", response_model=StatusResponse)
async def record_delivery(
    order_id: str, body: RecordDeliveryRequest, user_id: str = Depends(current_user)
) -> StatusResponse:
    logger.info("Recording delivery", order_id=order_id, user_id=user_id)
    command = RecordDelivery(order_id=order_id, confirmation_code=body.confirmation_code)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/confirm-receipt", response_model=StatusResponse)
async def confirm_receipt(order_id: str, user_id: str = Depends(current_user)) -> StatusResponse:
    current_domain.process(ConfirmReceipt(order_id=order_id, buyer_id=user_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Merchant Router
# ---------------------------------------------------------------------------
merchant_router = APIRouter(prefix="/merchants", tags=["merchants"])


@merchant_router.get("/me/notifications", response_model=list[NotificationResponse])
async def list_notifications(user_id: str = Depends(current_user)) -> list[NotificationResponse]:
    return [
        NotificationResponse(
            id=str(notification.id),
            order_id=str(notification.order_id),
            message=notification.message,
            kind=notification.kind,
            read=bool(notification.read),
            created_at=notification.created_at,
        )
        for notification in notifications_for(user_id)
    ]


@merchant_router.get("/me/balance", response_model=BalanceResponse)
async def get_balance(user_id: str = Depends(current_user)) -> BalanceResponse:
    try:
        balance = current_domain.repository_for(MerchantBalance).get(user_id)
    except ObjectNotFoundError:
        return BalanceResponse(seller_id=user_id, pending_balance=0.0, available_balance=0.0)
    return BalanceResponse(
        seller_id=user_id,
        pending_balance=balance.pending_balance or 0.0,
        available_balance=balance.available_balance or 0.0,
    )


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.get("/{product_id}/sales", response_model=SalesSummaryResponse)
async def get_sales_summary(product_id: str) -> SalesSummaryResponse:
    return SalesSummaryResponse(**sales_summary(product_id))
