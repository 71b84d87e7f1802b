"""BDD tests for tracking an order through delivery to completion."""

import pytest
from marketplace.order.delivery import AssignRider, ConfirmReceipt, RecordDelivery, StartTransit
from marketplace.order.order import Order
from marketplace.payment.payment import MerchantBalance
from marketplace.tracking.feed import status_feed
from marketplace.tracking.tracker import OrderStatusTracker
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/order_tracking.feature")


@pytest.fixture()
def tracking():
    return {"tracker": None, "seen": []}


def _process(error, command):
    try:
        current_domain.process(command, asynchronous=False)
    except ValidationError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("the buyer is tracking the order")
def start_tracking(placed, tracking):
    tracking["tracker"] = OrderStatusTracker(
        placed["order_id"],
        listener=lambda index, status: tracking["seen"].append(index),
    )


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('a rider named "{rider_name}" is assigned'))
def assign_rider(placed, error, rider_name):
    _process(error, AssignRider(order_id=placed["order_id"], rider_name=rider_name))


@when("the rider starts transit")
def start_transit(placed, error):
    _process(error, StartTransit(order_id=placed["order_id"]))


@when("the rider hands over with the confirmation code")
def hand_over(placed, error):
    code = current_domain.repository_for(Order).get(placed["order_id"]).confirmation_code
    _process(error, RecordDelivery(order_id=placed["order_id"], confirmation_code=code))


@when("the rider hands over with a wrong code")
def hand_over_wrong_code(placed, error):
    code = current_domain.repository_for(Order).get(placed["order_id"]).confirmation_code
    wrong = "111111" if code != "111111" else "222222"
    _process(error, RecordDelivery(order_id=placed["order_id"], confirmation_code=wrong))


@when("the buyer confirms receipt")
def confirm_receipt(buyer, placed, error):
    _process(error, ConfirmReceipt(order_id=placed["order_id"], buyer_id=buyer["id"]))


@when(parsers.cfparse('a stale "{status}" update arrives'))
def stale_update(placed, status):
    status_feed.publish(placed["order_id"], {"status": status})


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the tracker shows "{status}"'))
def tracker_shows(tracking, status):
    assert tracking["tracker"].status == status


@then("the tracker never went backwards")
def tracker_monotonic(tracking):
    seen = tracking["seen"]
    assert seen == sorted(seen)


@then(parsers.cfparse('"{seller_id}" has {amount:f} available'))
def seller_available(seller_id, amount):
    balance = current_domain.repository_for(MerchantBalance).get(seller_id)
    assert balance.available_balance == amount
