"""Dispatch (CQRS) — the logistics record a rider works from.

One dispatch is written per seller in an order: pick up at the seller,
drop off at the buyer. Its status mirrors the order's delivery status (see
``logistics.order_events``).
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String, ValueObject
from protean.utils.globals import current_domain

from marketplace.domain import marketplace


class DispatchStatus(Enum):
    AWAITING_RIDER = "awaiting_rider"
    RIDER_ASSIGNED = "rider_assigned"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"


@marketplace.value_object(part_of="Dispatch")
class GeoPoint:
    """Latitude/longitude pair; both are required when a point is given."""

    latitude = Float(min_value=-90.0, max_value=90.0)
    longitude = Float(min_value=-180.0, max_value=180.0)

    @invariant.post
    def both_coordinates_required(self):
        if self.latitude is None or self.longitude is None:
            raise ValidationError({"coordinates": ["Both latitude and longitude are required"]})


def geo_point(data):
    """Build a GeoPoint from a ``{"latitude", "longitude"}`` dict, or None."""
    if not data:
        return None
    return GeoPoint(latitude=data.get("latitude"), longitude=data.get("longitude"))


@marketplace.aggregate
class Dispatch:
    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    pickup_location = ValueObject(GeoPoint)
    dropoff_location = ValueObject(GeoPoint)
    dropoff_address = String(max_length=500)
    rider_name = String(max_length=255)
    rider_phone = String(max_length=50)
    status = String(choices=DispatchStatus, default=DispatchStatus.AWAITING_RIDER.value)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, order_id, seller_id, buyer_id, dropoff_address, pickup_location=None, dropoff_location=None):
        now = datetime.now(UTC)
        return cls(
            order_id=order_id,
            seller_id=seller_id,
            buyer_id=buyer_id,
            pickup_location=geo_point(pickup_location),
            dropoff_location=geo_point(dropoff_location),
            dropoff_address=dropoff_address,
            status=DispatchStatus.AWAITING_RIDER.value,
            created_at=now,
            updated_at=now,
        )

    def assign(self, rider_name, rider_phone=None):
        self.rider_name = rider_name
        self.rider_phone = rider_phone
        self._move_to(DispatchStatus.RIDER_ASSIGNED)

    def mark_in_transit(self):
        self._move_to(DispatchStatus.IN_TRANSIT)

    def mark_delivered(self):
        self._move_to(DispatchStatus.DELIVERED)

    def _move_to(self, status):
        self.status = status.value
        self.updated_at = datetime.now(UTC)


def dispatches_for_order(order_id):
    return current_domain.repository_for(Dispatch)._dao.query.filter(order_id=str(order_id)).all().items
