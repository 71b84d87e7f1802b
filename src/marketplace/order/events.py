"""Domain events for the Order (receipt) aggregate.

The Order is event sourced: these events are the only record of an order and
are replayed to rebuild it. They also feed the receipt projection, the
dispatch mirror and escrow settlement.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A buyer checked out; prices and totals are frozen from here on."""

    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    source = String(required=True)
    items = Text(required=True)  # JSON: list of item dicts
    subtotal = Float(required=True)
    tax = Float(required=True)
    total = Float(required=True)
    currency = String(default="NGN")
    payment_method = String(required=True)
    delivery_method = String(required=True)
    delivery_address = String()
    confirmation_code = String(required=True)
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class RiderAssigned:
    """Dispatch matched a rider to the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    rider_name = String(required=True)
    rider_phone = String()
    assigned_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderInTransit:
    """The rider picked the goods up and is heading to the buyer."""

    __version__ = 1

    order_id = Identifier(required=True)
    started_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderDelivered:
    """The rider handed the goods over against the buyer's confirmation code."""

    __version__ = 1

    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderCompleted:
    """The buyer acknowledged receipt; escrowed funds can be released."""

    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    completed_at = DateTime(required=True)
