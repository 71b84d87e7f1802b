"""Tests for escrow payments and merchant balances."""

import pytest
from marketplace.payment.events import PaymentHeld, PaymentReleased
from marketplace.payment.payment import MerchantBalance, Payment, PaymentStatus
from protean.exceptions import ValidationError


def _hold(amount=2000.0):
    return Payment.hold(order_id="order-001", seller_id="seller-a", buyer_id="buyer-001", amount=amount, method="card")


class TestPayment:
    def test_hold_creates_held_payment(self):
        payment = _hold()
        assert payment.status == PaymentStatus.HELD.value
        assert payment.order_id == "order-001"
        assert payment.amount == 2000.0
        assert isinstance(payment._events[-1], PaymentHeld)

    def test_release(self):
        payment = _hold()
        payment.release()
        assert payment.status == PaymentStatus.RELEASED.value
        assert payment.released_at is not None
        event = payment._events[-1]
        assert isinstance(event, PaymentReleased)
        assert event.order_id == "order-001"

    def test_cannot_release_twice(self):
        payment = _hold()
        payment.release()
        with pytest.raises(ValidationError):
            payment.release()


class TestMerchantBalance:
    def test_identity_is_seller_id(self):
        balance = MerchantBalance.open("seller-a")
        assert balance.id == "seller-a"
        assert balance.pending_balance == 0.0
        assert balance.available_balance == 0.0

    def test_hold_adds_to_pending(self):
        balance = MerchantBalance.open("seller-a")
        balance.hold(1000.10)
        balance.hold(0.20)
        assert balance.pending_balance == 1000.30
        assert balance.available_balance == 0.0

    def test_release_moves_pending_to_available(self):
        balance = MerchantBalance.open("seller-a")
        balance.hold(1500.0)
        balance.release(1000.0)
        assert balance.pending_balance == 500.0
        assert balance.available_balance == 1000.0

    def test_cannot_release_more_than_held(self):
        balance = MerchantBalance.open("seller-a")
        balance.hold(100.0)
        with pytest.raises(ValidationError):
            balance.release(100.01)
