"""Shared BDD fixtures and step definitions for the marketplace."""

import pytest
from marketplace.cart.cart import ShoppingCart
from marketplace.cart.items import AddToCart
from marketplace.cart.management import OpenCart
from marketplace.checkout.submission import CheckoutCart
from marketplace.notification.notification import notifications_for
from marketplace.order.order import Order
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when


@pytest.fixture()
def buyer():
    return {"id": None}


@pytest.fixture()
def error():
    """Mutable container to capture a rejected step."""
    return {"exc": None}


@pytest.fixture()
def placed():
    return {"order_id": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the buyer "{user_id}" has an empty cart'))
def empty_cart(buyer, user_id):
    buyer["id"] = user_id
    current_domain.process(OpenCart(user_id=user_id), asynchronous=False)


@given(parsers.cfparse('the cart holds "{product_id}" from "{seller_id}" at {price:f} x {quantity:d}'))
def cart_holds(buyer, product_id, seller_id, price, quantity):
    current_domain.process(
        AddToCart(
            user_id=buyer["id"],
            product_id=product_id,
            name=f"Item {product_id}",
            unit_price=price,
            seller_id=seller_id,
            quantity=quantity,
        ),
        asynchronous=False,
    )


def _checkout_for_rider(buyer, placed, error, address):
    try:
        placed["order_id"] = current_domain.process(
            CheckoutCart(
                buyer_id=buyer["id"],
                buyer_name="Ada",
                payment_method="card",
                delivery_method="rider",
                delivery_address=address,
            ),
            asynchronous=False,
        )
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.re(r'the buyer checks out for rider delivery to "(?P<address>[^"]*)"'))
def checks_out(buyer, placed, error, address):
    _checkout_for_rider(buyer, placed, error, address)


@given(parsers.cfparse('the buyer has checked out for rider delivery to "{address}"'))
def checked_out(buyer, placed, error, address):
    _checkout_for_rider(buyer, placed, error, address)
    assert placed["order_id"] is not None


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
def _order(placed):
    return current_domain.repository_for(Order).get(placed["order_id"])


def _cart(buyer):
    return current_domain.repository_for(ShoppingCart).get(buyer["id"])


@then(parsers.cfparse("the order total is {amount:f}"))
def order_total(placed, amount):
    assert _order(placed).pricing.total == pytest.approx(amount)


@then(parsers.cfparse('the cart holds only "{product_id}"'))
def cart_holds_only(buyer, product_id):
    assert [line.product_id for line in _cart(buyer).lines] == [product_id]


@then("the cart is empty")
def cart_is_empty(buyer):
    assert _cart(buyer).lines == []


@then(parsers.cfparse('"{seller_id}" has {count:d} notification'))
def seller_notifications(seller_id, count):
    assert len(notifications_for(seller_id)) == count


@then(parsers.cfparse('the checkout is rejected for "{field}"'))
@then(parsers.cfparse('the step is rejected for "{field}"'))
def rejected_for(error, field):
    assert error["exc"] is not None
    assert field in error["exc"].messages
