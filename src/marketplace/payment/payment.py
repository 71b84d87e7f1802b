"""Escrow payment and merchant balance aggregates (CQRS).

Checkout writes one ``Payment`` per seller in status HELD and puts the same
amount on hold in that seller's ``MerchantBalance``. Nothing moves until the
buyer confirms receipt; settlement then releases every held payment carrying
that order's id, shifting the money from ``pending_balance`` to
``available_balance``.

State Machine:
    HELD → RELEASED
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, Identifier, String

from marketplace.domain import marketplace
from marketplace.order.status import PaymentMethod
from marketplace.payment.events import PaymentHeld, PaymentReleased
from marketplace.utils.money import D, round_money


class PaymentStatus(Enum):
    HELD = "held"
    RELEASED = "released"


@marketplace.aggregate
class Payment:
    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.0)
    method = String(choices=PaymentMethod)
    status = String(choices=PaymentStatus, default=PaymentStatus.HELD.value)
    created_at = DateTime()
    released_at = DateTime()

    @classmethod
    def hold(cls, order_id, seller_id, buyer_id, amount, method):
        payment = cls(
            order_id=order_id,
            seller_id=seller_id,
            buyer_id=buyer_id,
            amount=float(round_money(amount)),
            method=method,
            status=PaymentStatus.HELD.value,
            created_at=datetime.now(UTC),
        )
        payment.raise_(
            PaymentHeld(
                payment_id=str(payment.id),
                order_id=str(order_id),
                seller_id=str(seller_id),
                amount=payment.amount,
                held_at=payment.created_at,
            )
        )
        return payment

    def release(self):
        if PaymentStatus(self.status) != PaymentStatus.HELD:
            raise ValidationError({"status": [f"Payment is already {self.status}"]})

        self.status = PaymentStatus.RELEASED.value
        self.released_at = datetime.now(UTC)
        self.raise_(
            PaymentReleased(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                seller_id=str(self.seller_id),
                amount=self.amount,
                released_at=self.released_at,
            )
        )


@marketplace.aggregate
class MerchantBalance:
    """Per-seller wallet. Its identity is the seller id."""

    pending_balance = Float(default=0.0)
    available_balance = Float(default=0.0)
    updated_at = DateTime()

    @classmethod
    def open(cls, seller_id):
        return cls(id=seller_id, pending_balance=0.0, available_balance=0.0, updated_at=datetime.now(UTC))

    def hold(self, amount):
        self.pending_balance = float(round_money(D(self.pending_balance) + D(amount)))
        self.updated_at = datetime.now(UTC)

    def release(self, amount):
        amount = D(amount)
        if amount > D(self.pending_balance):
            raise ValidationError({"pending_balance": ["Cannot release more than is held"]})

        self.pending_balance = float(round_money(D(self.pending_balance) - amount))
        self.available_balance = float(round_money(D(self.available_balance) + amount))
        self.updated_at = datetime.now(UTC)


def get_or_open_balance(repo, seller_id):
    try:
        return repo.get(str(seller_id))
    except ObjectNotFoundError:
        return MerchantBalance.open(str(seller_id))
