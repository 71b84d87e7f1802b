"""Domain events for the escrow payment and merchant balance aggregates."""

from protean.fields import DateTime, Float, Identifier

from marketplace.domain import marketplace


@marketplace.event(part_of="Payment")
class PaymentHeld:
    """A seller's share of an order went into escrow at checkout."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    amount = Float(required=True)
    held_at = DateTime(required=True)


@marketplace.event(part_of="Payment")
class PaymentReleased:
    """Escrow released to the seller after the buyer confirmed receipt."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    amount = Float(required=True)
    released_at = DateTime(required=True)
