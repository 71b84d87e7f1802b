"""Order status vocabulary shared by the aggregate, projections and tracker."""

from enum import Enum


class OrderStatus(Enum):
    PENDING = "pending"
    RIDER_ASSIGNED = "rider_assigned"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    COMPLETED = "completed"


class PaymentMethod(Enum):
    CARD = "card"
    TRANSFER = "transfer"
    USSD = "ussd"


class DeliveryMethod(Enum):
    RIDER = "rider"
    PICKUP = "pickup"


class CheckoutSource(Enum):
    CART = "cart"
    BUY_NOW = "buy_now"


# Declaration order of OrderStatus is the tracking order
STATUS_SEQUENCE = [status.value for status in OrderStatus]

# Receipts a rider is currently working on
ACTIVE_DISPATCH_STATUSES = {OrderStatus.RIDER_ASSIGNED.value, OrderStatus.IN_TRANSIT.value}


def status_index(status):
    """Position of ``status`` in the tracking sequence; unknown values map to 0."""
    value = status.value if isinstance(status, OrderStatus) else status
    try:
        return STATUS_SEQUENCE.index(value)
    except ValueError:
        return 0
