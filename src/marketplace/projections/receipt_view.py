"""Receipt view — the buyer's order history and live delivery status."""

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.events import OrderCompleted, OrderDelivered, OrderInTransit, OrderPlaced, RiderAssigned
from marketplace.order.order import Order
from marketplace.order.status import ACTIVE_DISPATCH_STATUSES, OrderStatus, status_index
from marketplace.tracking.feed import status_feed


@marketplace.projection
class ReceiptView:
    order_id = Identifier(identifier=True, required=True)
    buyer_id = Identifier(required=True)
    source = String()
    status = String(required=True)
    status_index = Integer(default=0)
    items = Text()  # JSON: list of item dicts
    subtotal = Float()
    tax = Float()
    total = Float()
    currency = String(default="NGN")
    payment_method = String()
    delivery_method = String()
    delivery_address = String()
    confirmation_code = String()
    rider_name = String()
    rider_phone = String()
    created_at = DateTime()
    updated_at = DateTime()


@marketplace.projector(projector_for=ReceiptView, aggregates=[Order])
class ReceiptViewProjector:
    def _save(self, receipt):
        current_domain.repository_for(ReceiptView).add(receipt)
        status_feed.publish(receipt.order_id, receipt)

    @on(OrderPlaced)
    def on_order_placed(self, event):
        self._save(
            ReceiptView(
                order_id=event.order_id,
                buyer_id=event.buyer_id,
                source=event.source,
                status=OrderStatus.PENDING.value,
                status_index=status_index(OrderStatus.PENDING.value),
                items=event.items,
                subtotal=event.subtotal,
                tax=event.tax,
                total=event.total,
                currency=event.currency or "NGN",
                payment_method=event.payment_method,
                delivery_method=event.delivery_method,
                delivery_address=event.delivery_address,
                confirmation_code=event.confirmation_code,
                created_at=event.placed_at,
                updated_at=event.placed_at,
            )
        )

    def _update_status(self, order_id, status, updated_at=None, **changes):
        receipt = current_domain.repository_for(ReceiptView).get(order_id)
        receipt.status = status.value
        receipt.status_index = status_index(status.value)
        for field, value in changes.items():
            setattr(receipt, field, value)
        if updated_at:
            receipt.updated_at = updated_at
        self._save(receipt)

    @on(RiderAssigned)
    def on_rider_assigned(self, event):
        self._update_status(
            event.order_id,
            OrderStatus.RIDER_ASSIGNED,
            event.assigned_at,
            rider_name=event.rider_name,
            rider_phone=event.rider_phone,
        )

    @on(OrderInTransit)
    def on_order_in_transit(self, event):
        self._update_status(event.order_id, OrderStatus.IN_TRANSIT, event.started_at)

    @on(OrderDelivered)
    def on_order_delivered(self, event):
        self._update_status(event.order_id, OrderStatus.DELIVERED, event.delivered_at)

    @on(OrderCompleted)
    def on_order_completed(self, event):
        self._update_status(event.order_id, OrderStatus.COMPLETED, event.completed_at)


def receipts_for(buyer_id):
    """A buyer's receipts, newest first."""
    return (
        current_domain.repository_for(ReceiptView)
        ._dao.query.filter(buyer_id=str(buyer_id))
        .order_by("-created_at")
        .all()
        .items
    )


def active_dispatches(buyer_id):
    """The buyer's orders that are currently with a rider."""
    return [receipt for receipt in receipts_for(buyer_id) if receipt.status in ACTIVE_DISPATCH_STATUSES]
