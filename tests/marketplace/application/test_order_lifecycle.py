"""Application tests for the delivery lifecycle, its read models and escrow settlement.

checkout → assign rider → in transit → delivered (code) → completed (buyer),
checking the receipt view, the dispatch mirror and the merchant balances at
each step.
"""

import pytest
from marketplace.logistics.dispatch import Dispatch, DispatchStatus, dispatches_for_order
from marketplace.order.delivery import AssignRider, ConfirmReceipt, RecordDelivery, StartTransit
from marketplace.order.order import Order
from marketplace.order.status import OrderStatus
from marketplace.payment.payment import MerchantBalance, Payment, PaymentStatus
from marketplace.projections.receipt_view import ReceiptView, active_dispatches, receipts_for
from marketplace.tracking.tracker import OrderStatusTracker
from protean import current_domain
from protean.exceptions import ValidationError


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


def _receipt(order_id):
    return current_domain.repository_for(ReceiptView).get(order_id)


def _deliver(order_id):
    code = _order(order_id).confirmation_code
    current_domain.process(AssignRider(order_id=order_id, rider_name="Tunde", rider_phone="0800"), asynchronous=False)
    current_domain.process(StartTransit(order_id=order_id), asynchronous=False)
    current_domain.process(RecordDelivery(order_id=order_id, confirmation_code=code), asynchronous=False)


def _balance(seller_id):
    return current_domain.repository_for(MerchantBalance).get(seller_id)


@pytest.fixture()
def order_id(add_to_cart, checkout):
    add_to_cart("buyer-001", "prod-a", 1000.0, quantity=2, seller_id="seller-a")
    add_to_cart("buyer-001", "prod-b", 500.0, seller_id="seller-b")
    return checkout()


class TestReceiptView:
    def test_receipt_created_on_checkout(self, order_id):
        receipt = _receipt(order_id)
        assert receipt.buyer_id == "buyer-001"
        assert receipt.status == OrderStatus.PENDING.value
        assert receipt.status_index == 0
        assert receipt.total == 2800.0
        assert receipt.confirmation_code == _order(order_id).confirmation_code

    def test_receipts_for_lists_newest_first(self, add_to_cart, checkout):
        add_to_cart("buyer-001", "prod-a", 1000.0)
        first = checkout()
        add_to_cart("buyer-001", "prod-b", 500.0)
        second = checkout()

        receipts = receipts_for("buyer-001")
        assert [r.order_id for r in receipts] == [second, first]
        assert receipts_for("someone-else") == []

    def test_active_dispatches(self, order_id):
        assert active_dispatches("buyer-001") == []

        current_domain.process(AssignRider(order_id=order_id, rider_name="Tunde"), asynchronous=False)
        assert [r.order_id for r in active_dispatches("buyer-001")] == [order_id]

        current_domain.process(StartTransit(order_id=order_id), asynchronous=False)
        assert [r.order_id for r in active_dispatches("buyer-001")] == [order_id]


class TestDeliveryLifecycle:
    def test_happy_path(self, order_id):
        current_domain.process(AssignRider(order_id=order_id, rider_name="Tunde", rider_phone="0800"), asynchronous=False)
        receipt = _receipt(order_id)
        assert receipt.status == OrderStatus.RIDER_ASSIGNED.value
        assert receipt.status_index == 1
        assert receipt.rider_name == "Tunde"

        current_domain.process(StartTransit(order_id=order_id), asynchronous=False)
        assert _receipt(order_id).status_index == 2

        code = _order(order_id).confirmation_code
        current_domain.process(RecordDelivery(order_id=order_id, confirmation_code=code), asynchronous=False)
        assert _receipt(order_id).status == OrderStatus.DELIVERED.value

        current_domain.process(ConfirmReceipt(order_id=order_id, buyer_id="buyer-001"), asynchronous=False)
        assert _order(order_id).status == OrderStatus.COMPLETED.value
        assert _receipt(order_id).status_index == 4

    def test_wrong_code_is_rejected(self, order_id):
        current_domain.process(AssignRider(order_id=order_id, rider_name="Tunde"), asynchronous=False)
        current_domain.process(StartTransit(order_id=order_id), asynchronous=False)

        wrong = "111111" if _order(order_id).confirmation_code != "111111" else "222222"
        with pytest.raises(ValidationError):
            current_domain.process(RecordDelivery(order_id=order_id, confirmation_code=wrong), asynchronous=False)
        assert _receipt(order_id).status == OrderStatus.IN_TRANSIT.value

    def test_other_user_cannot_confirm_receipt(self, order_id):
        _deliver(order_id)
        with pytest.raises(ValidationError):
            current_domain.process(ConfirmReceipt(order_id=order_id, buyer_id="intruder"), asynchronous=False)
        assert _order(order_id).status == OrderStatus.DELIVERED.value

    def test_dispatch_records_mirror_the_order(self, order_id):
        current_domain.process(AssignRider(order_id=order_id, rider_name="Tunde", rider_phone="0800"), asynchronous=False)
        dispatches = dispatches_for_order(order_id)
        assert len(dispatches) == 2
        assert all(d.status == DispatchStatus.RIDER_ASSIGNED.value for d in dispatches)
        assert all(d.rider_name == "Tunde" for d in dispatches)

        current_domain.process(StartTransit(order_id=order_id), asynchronous=False)
        assert all(d.status == DispatchStatus.IN_TRANSIT.value for d in dispatches_for_order(order_id))

        code = _order(order_id).confirmation_code
        current_domain.process(RecordDelivery(order_id=order_id, confirmation_code=code), asynchronous=False)
        assert all(d.status == DispatchStatus.DELIVERED.value for d in dispatches_for_order(order_id))

    def test_tracker_follows_live_updates(self, order_id):
        seen = []
        with OrderStatusTracker(order_id, listener=lambda index, status: seen.append(status)) as tracker:
            assert tracker.status == "pending"
            _deliver(order_id)
            current_domain.process(ConfirmReceipt(order_id=order_id, buyer_id="buyer-001"), asynchronous=False)

        assert seen == ["pending", "rider_assigned", "in_transit", "delivered", "completed"]
        assert tracker.index == 4

    def test_tracker_starts_from_current_status(self, order_id):
        _deliver(order_id)
        tracker = OrderStatusTracker(order_id)
        assert tracker.status == "delivered"
        tracker.close()


class TestEscrowSettlement:
    def test_completion_releases_the_orders_escrow(self, order_id):
        assert _balance("seller-a").pending_balance == 2000.0

        _deliver(order_id)
        assert _balance("seller-a").available_balance == 0.0

        current_domain.process(ConfirmReceipt(order_id=order_id, buyer_id="buyer-001"), asynchronous=False)

        payments = current_domain.repository_for(Payment)._dao.query.filter(order_id=order_id).all().items
        assert all(p.status == PaymentStatus.RELEASED.value for p in payments)

        seller_a = _balance("seller-a")
        assert seller_a.pending_balance == 0.0
        assert seller_a.available_balance == 2000.0
        seller_b = _balance("seller-b")
        assert seller_b.pending_balance == 0.0
        assert seller_b.available_balance == 500.0

    def test_only_the_completed_order_is_settled(self, add_to_cart, checkout):
        add_to_cart("buyer-001", "prod-a", 1000.0, seller_id="seller-a")
        first = checkout()
        add_to_cart("buyer-002", "prod-c", 700.0, seller_id="seller-a")
        second = checkout("buyer-002")
        assert _balance("seller-a").pending_balance == 1700.0

        _deliver(first)
        current_domain.process(ConfirmReceipt(order_id=first, buyer_id="buyer-001"), asynchronous=False)

        seller_a = _balance("seller-a")
        assert seller_a.available_balance == 1000.0
        assert seller_a.pending_balance == 700.0

        [still_held] = current_domain.repository_for(Payment)._dao.query.filter(order_id=second).all().items
        assert still_held.status == PaymentStatus.HELD.value

    def test_delivery_alone_does_not_release(self, order_id):
        _deliver(order_id)
        payments = current_domain.repository_for(Payment)._dao.query.filter(order_id=order_id).all().items
        assert all(p.status == PaymentStatus.HELD.value for p in payments)


class TestPickupLifecycle:
    def test_pickup_handover_then_completion(self, add_to_cart, checkout):
        add_to_cart("buyer-001", "prod-a", 1000.0)
        order_id = checkout(delivery_method="pickup", delivery_address=None)

        code = _order(order_id).confirmation_code
        current_domain.process(RecordDelivery(order_id=order_id, confirmation_code=code), asynchronous=False)
        assert _receipt(order_id).status == OrderStatus.DELIVERED.value
        assert current_domain.repository_for(Dispatch)._dao.query.all().items == []

        current_domain.process(ConfirmReceipt(order_id=order_id, buyer_id="buyer-001"), asynchronous=False)
        assert _balance("seller-a").available_balance == 1000.0
