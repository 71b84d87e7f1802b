"""Order aggregate (Event Sourced) — the buyer's receipt for one checkout.

An order is a point-in-time snapshot: line prices, subtotal, tax and total are
captured when it is placed and never recomputed, whatever happens to the
listing afterwards. The only things that move are the delivery status and
the rider details.

State Machine (linear, no cancellation):
    PENDING → RIDER_ASSIGNED → IN_TRANSIT → DELIVERED → COMPLETED

RIDER_ASSIGNED, IN_TRANSIT and DELIVERED are driven by dispatch. Pickup orders
go straight from PENDING to DELIVERED when the seller hands the goods over.
DELIVERED → COMPLETED is the buyer's explicit acknowledgement.
"""

import json
from datetime import UTC, datetime
from uuid import uuid4

from protean import apply
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from marketplace.domain import marketplace
from marketplace.order.events import (
    OrderCompleted,
    OrderDelivered,
    OrderInTransit,
    OrderPlaced,
    RiderAssigned,
)
from marketplace.order.status import (
    CheckoutSource,
    DeliveryMethod,
    OrderStatus,
    PaymentMethod,
    status_index,
)

_NEXT_STATUS = {
    OrderStatus.PENDING: OrderStatus.RIDER_ASSIGNED,
    OrderStatus.RIDER_ASSIGNED: OrderStatus.IN_TRANSIT,
    OrderStatus.IN_TRANSIT: OrderStatus.DELIVERED,
    OrderStatus.DELIVERED: OrderStatus.COMPLETED,
    OrderStatus.COMPLETED: None,  # Terminal
}


def _choice(enum_cls, value, field_name):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError({field_name: [f"'{value}' is not one of: {allowed}"]}) from None


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Order")
class OrderPricing:
    """Subtotal, combined delivery/service tax and total, frozen at checkout."""

    subtotal = Float(default=0.0)
    tax = Float(default=0.0)
    total = Float(default=0.0)
    currency = String(max_length=3, default="NGN")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    seller_id = Identifier(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root (Event Sourced)
# ---------------------------------------------------------------------------
@marketplace.aggregate(is_event_sourced=True)
class Order:
    buyer_id = Identifier(required=True)
    source = String(choices=CheckoutSource, default=CheckoutSource.CART.value)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    items = HasMany(OrderItem)
    pricing = ValueObject(OrderPricing)
    payment_method = String(choices=PaymentMethod)
    delivery_method = String(choices=DeliveryMethod, default=DeliveryMethod.RIDER.value)
    delivery_address = String(max_length=500)
    confirmation_code = String(max_length=6)
    rider_name = String(max_length=255)
    rider_phone = String(max_length=50)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        buyer_id,
        items_data,
        pricing,
        payment_method,
        confirmation_code,
        delivery_method=DeliveryMethod.RIDER.value,
        delivery_address=None,
        source=CheckoutSource.CART.value,
    ):
        """Place a new order from already-priced checkout lines.

        Args:
            buyer_id: The user checking out.
            items_data: List of dicts with product_id, title, unit_price,
                        quantity and seller_id.
            pricing: Dict with subtotal, tax, total and currency.
            payment_method: One of card, transfer, ussd.
            confirmation_code: Six-digit delivery handoff code.
        """
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})
        _choice(PaymentMethod, payment_method, "payment_method")
        _choice(DeliveryMethod, delivery_method, "delivery_method")
        _choice(CheckoutSource, source, "source")

        # Pre-generate item IDs for deterministic replay
        items_with_ids = [{**item, "id": str(uuid4())} for item in items_data]

        order = cls._create_new()
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                buyer_id=str(buyer_id),
                source=source,
                items=json.dumps(items_with_ids),
                subtotal=pricing["subtotal"],
                tax=pricing["tax"],
                total=pricing["total"],
                currency=pricing.get("currency", "NGN"),
                payment_method=payment_method,
                delivery_method=delivery_method,
                delivery_address=delivery_address,
                confirmation_code=confirmation_code,
                placed_at=datetime.now(UTC),
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if _NEXT_STATUS.get(current) != target_status:
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    @property
    def status_index(self):
        return status_index(self.status)

    # -------------------------------------------------------------------
    # Delivery lifecycle
    # -------------------------------------------------------------------
    def assign_rider(self, rider_name, rider_phone=None):
        """Record the rider dispatch assigned to this order."""
        if DeliveryMethod(self.delivery_method) == DeliveryMethod.PICKUP:
            raise ValidationError({"delivery_method": ["Pickup orders are not dispatched to a rider"]})
        self._assert_can_transition(OrderStatus.RIDER_ASSIGNED)
        self.raise_(
            RiderAssigned(
                order_id=str(self.id),
                rider_name=rider_name,
                rider_phone=rider_phone,
                assigned_at=datetime.now(UTC),
            )
        )

    def start_transit(self):
        """The rider has collected the goods."""
        self._assert_can_transition(OrderStatus.IN_TRANSIT)
        self.raise_(OrderInTransit(order_id=str(self.id), started_at=datetime.now(UTC)))

    def record_delivery(self, confirmation_code):
        """Hand the goods over; the buyer's confirmation code must match."""
        current = OrderStatus(self.status)
        is_pickup_handover = (
            current == OrderStatus.PENDING and DeliveryMethod(self.delivery_method) == DeliveryMethod.PICKUP
        )
        if not is_pickup_handover:
            self._assert_can_transition(OrderStatus.DELIVERED)

        if str(confirmation_code or "").strip() != self.confirmation_code:
            raise ValidationError({"confirmation_code": ["Confirmation code does not match"]})

        self.raise_(OrderDelivered(order_id=str(self.id), delivered_at=datetime.now(UTC)))

    def confirm_receipt(self, buyer_id):
        """Buyer's manual acknowledgement that the order arrived."""
        if str(buyer_id) != str(self.buyer_id):
            raise ValidationError({"buyer_id": ["Only the buyer can confirm receipt of this order"]})
        self._assert_can_transition(OrderStatus.COMPLETED)
        self.raise_(
            OrderCompleted(
                order_id=str(self.id),
                buyer_id=str(self.buyer_id),
                completed_at=datetime.now(UTC),
            )
        )

    # -------------------------------------------------------------------
    # @apply methods — rebuild state during event replay
    # -------------------------------------------------------------------
    @apply
    def _on_order_placed(self, event: OrderPlaced):
        self.id = event.order_id
        self.buyer_id = event.buyer_id
        self.source = event.source
        self.status = OrderStatus.PENDING.value
        self.payment_method = event.payment_method
        self.delivery_method = event.delivery_method
        self.delivery_address = event.delivery_address
        self.confirmation_code = event.confirmation_code
        self.created_at = event.placed_at
        self.updated_at = event.placed_at

        items_data = json.loads(event.items) if isinstance(event.items, str) else []
        self.items = [OrderItem(**item_data) for item_data in items_data]

        self.pricing = OrderPricing(
            subtotal=event.subtotal,
            tax=event.tax,
            total=event.total,
            currency=event.currency or "NGN",
        )

    @apply
    def _on_rider_assigned(self, event: RiderAssigned):
        self.status = OrderStatus.RIDER_ASSIGNED.value
        self.rider_name = event.rider_name
        self.rider_phone = event.rider_phone
        self.updated_at = event.assigned_at

    @apply
    def _on_order_in_transit(self, event: OrderInTransit):
        self.status = OrderStatus.IN_TRANSIT.value
        self.updated_at = event.started_at

    @apply
    def _on_order_delivered(self, event: OrderDelivered):
        self.status = OrderStatus.DELIVERED.value
        self.updated_at = event.delivered_at

    @apply
    def _on_order_completed(self, event: OrderCompleted):
        self.status = OrderStatus.COMPLETED.value
        self.updated_at = event.completed_at
