"""Order submission — turns the selected cart lines (or a single buy-now item)
into an order and everything that hangs off it.

The handler validates first, then writes seller notifications, dispatch
records, escrow payments with merchant balance holds, sale records and the
order itself. All of it happens inside the command handler's unit of work,
so either every record is committed or none is.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.cart.cart import ShoppingCart
from marketplace.cart.management import get_or_create_cart
from marketplace.checkout.pricing import generate_confirmation_code, group_by_seller, price_lines
from marketplace.domain import marketplace
from marketplace.logistics.dispatch import Dispatch
from marketplace.notification.notification import SellerNotification
from marketplace.order.order import Order
from marketplace.order.status import CheckoutSource, DeliveryMethod, PaymentMethod
from marketplace.payment.payment import MerchantBalance, Payment, get_or_open_balance
from marketplace.sales.sale import Sale
from marketplace.utils.money import sum_lines

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class CheckoutCart:
    """Check out the selected lines of the buyer's cart."""

    buyer_id = Identifier(required=True)
    buyer_name = String(max_length=255)
    payment_method = String(required=True, max_length=20)
    delivery_method = String(max_length=20, default=DeliveryMethod.RIDER.value)
    delivery_address = String(max_length=500)
    dropoff_latitude = Float()
    dropoff_longitude = Float()
    pickup_locations = Text()  # JSON: {seller_id: {"latitude": .., "longitude": ..}}
    expected_revision = Integer()


@marketplace.command(part_of="Order")
class BuyNow:
    """Buy a single listing straight away; the cart is not touched."""

    buyer_id = Identifier(required=True)
    buyer_name = String(max_length=255)
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    seller_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)
    payment_method = String(required=True, max_length=20)
    delivery_method = String(max_length=20, default=DeliveryMethod.RIDER.value)
    delivery_address = String(max_length=500)
    dropoff_latitude = Float()
    dropoff_longitude = Float()
    pickup_latitude = Float()
    pickup_longitude = Float()


def validate_checkout(payment_method, delivery_method, delivery_address):
    """Reject a checkout before anything is written."""
    errors = {}
    try:
        PaymentMethod(payment_method)
    except ValueError:
        errors["payment_method"] = [f"'{payment_method}' is not one of: card, transfer, ussd"]

    try:
        method = DeliveryMethod(delivery_method or DeliveryMethod.RIDER.value)
    except ValueError:
        errors["delivery_method"] = [f"'{delivery_method}' is not one of: rider, pickup"]
    else:
        if method == DeliveryMethod.RIDER and not (delivery_address or "").strip():
            errors["delivery_address"] = ["Address required for rider delivery"]

    if errors:
        raise ValidationError(errors)


def _point(latitude, longitude):
    if latitude is None or longitude is None:
        return None
    return {"latitude": latitude, "longitude": longitude}


def _parse_pickup_locations(raw):
    if not raw:
        return {}
    try:
        locations = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError({"pickup_locations": ["Pickup locations must be a JSON object"]})
    if not isinstance(locations, dict):
        raise ValidationError({"pickup_locations": ["Pickup locations must be a JSON object"]})
    return locations


@marketplace.command_handler(part_of=Order)
class CheckoutHandler:
    @handle(CheckoutCart)
    def checkout_cart(self, command):
        validate_checkout(command.payment_method, command.delivery_method, command.delivery_address)

        cart_repo = current_domain.repository_for(ShoppingCart)
        cart = get_or_create_cart(cart_repo, command.buyer_id)
        cart.assert_revision(command.expected_revision)

        lines = [line.to_dict() for line in cart.selected_lines()]
        if not lines:
            raise ValidationError({"lines": ["Select at least one item to check out"]})

        pickup_locations = _parse_pickup_locations(command.pickup_locations)
        order = self._submit(
            command,
            lines,
            source=CheckoutSource.CART.value,
            pickup_locations=pickup_locations,
        )

        cart.check_out(order.id, [line["product_id"] for line in lines])
        cart_repo.add(cart)
        return str(order.id)

    @handle(BuyNow)
    def buy_now(self, command):
        validate_checkout(command.payment_method, command.delivery_method, command.delivery_address)

        line = {
            "product_id": str(command.product_id),
            "name": command.name,
            "unit_price": command.unit_price,
            "quantity": command.quantity or 1,
            "seller_id": str(command.seller_id),
        }
        pickup = _point(command.pickup_latitude, command.pickup_longitude)
        order = self._submit(
            command,
            [line],
            source=CheckoutSource.BUY_NOW.value,
            pickup_locations={line["seller_id"]: pickup} if pickup else {},
        )
        return str(order.id)

    def _submit(self, command, lines, source, pickup_locations):
        delivery_method = command.delivery_method or DeliveryMethod.RIDER.value
        pricing = price_lines(lines)
        by_seller = group_by_seller(lines)

        order = Order.place(
            buyer_id=command.buyer_id,
            items_data=[
                {
                    "product_id": line["product_id"],
                    "title": line["name"],
                    "unit_price": line["unit_price"],
                    "quantity": line["quantity"],
                    "seller_id": line["seller_id"],
                }
                for line in lines
            ],
            pricing=pricing,
            payment_method=command.payment_method,
            confirmation_code=generate_confirmation_code(),
            delivery_method=delivery_method,
            delivery_address=command.delivery_address,
            source=source,
        )
        order_id = str(order.id)

        notification_repo = current_domain.repository_for(SellerNotification)
        for seller_id, seller_lines in by_seller.items():
            notification_repo.add(
                SellerNotification.for_sale(
                    seller_id=seller_id,
                    order_id=order_id,
                    buyer_name=command.buyer_name,
                    amount=sum_lines(seller_lines),
                    item_names=[line["name"] for line in seller_lines],
                )
            )

        if delivery_method == DeliveryMethod.RIDER.value:
            dispatch_repo = current_domain.repository_for(Dispatch)
            dropoff = _point(command.dropoff_latitude, command.dropoff_longitude)
            for seller_id in by_seller:
                dispatch_repo.add(
                    Dispatch.create(
                        order_id=order_id,
                        seller_id=seller_id,
                        buyer_id=command.buyer_id,
                        dropoff_address=command.delivery_address,
                        pickup_location=pickup_locations.get(seller_id),
                        dropoff_location=dropoff,
                    )
                )

        payment_repo = current_domain.repository_for(Payment)
        balance_repo = current_domain.repository_for(MerchantBalance)
        for seller_id, seller_lines in by_seller.items():
            amount = sum_lines(seller_lines)
            payment_repo.add(
                Payment.hold(
                    order_id=order_id,
                    seller_id=seller_id,
                    buyer_id=command.buyer_id,
                    amount=amount,
                    method=command.payment_method,
                )
            )
            balance = get_or_open_balance(balance_repo, seller_id)
            balance.hold(amount)
            balance_repo.add(balance)

        sale_repo = current_domain.repository_for(Sale)
        for line in lines:
            sale_repo.add(Sale.record(order_id, command.buyer_id, line))

        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order placed",
            order_id=order_id,
            buyer_id=str(command.buyer_id),
            source=source,
            sellers=len(by_seller),
            total=pricing["total"],
        )
        return order
