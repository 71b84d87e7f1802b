"""Shared fixtures for the marketplace tests."""

import pytest
from marketplace.cart.items import AddToCart
from marketplace.cart.selection import ToggleSelection
from marketplace.checkout.submission import BuyNow, CheckoutCart
from protean import current_domain

BUYER = "buyer-001"
SELLER_A = "seller-a"
SELLER_B = "seller-b"


def _add_to_cart(user_id, product_id, unit_price, quantity=1, seller_id=SELLER_A, name=None):
    current_domain.process(
        AddToCart(
            user_id=user_id,
            product_id=product_id,
            name=name or f"Item {product_id}",
            unit_price=unit_price,
            seller_id=seller_id,
            quantity=quantity,
        ),
        asynchronous=False,
    )


def _checkout(user_id=BUYER, **overrides):
    fields = {
        "buyer_id": user_id,
        "buyer_name": "Ada",
        "payment_method": "card",
        "delivery_method": "rider",
        "delivery_address": "Room 12, Moremi Hall",
    }
    fields.update(overrides)
    return current_domain.process(CheckoutCart(**fields), asynchronous=False)


def _buy_now(user_id=BUYER, **overrides):
    fields = {
        "buyer_id": user_id,
        "buyer_name": "Ada",
        "product_id": "prod-now",
        "name": "Desk Lamp",
        "unit_price": 3000.0,
        "seller_id": SELLER_A,
        "quantity": 1,
        "payment_method": "transfer",
        "delivery_method": "rider",
        "delivery_address": "Room 12, Moremi Hall",
    }
    fields.update(overrides)
    return current_domain.process(BuyNow(**fields), asynchronous=False)


@pytest.fixture()
def add_to_cart():
    return _add_to_cart


@pytest.fixture()
def checkout():
    return _checkout


@pytest.fixture()
def buy_now():
    return _buy_now


@pytest.fixture()
def mixed_cart():
    """A: 1000 x 2 selected; B: 500 x 1 unselected, from two sellers."""
    _add_to_cart(BUYER, "prod-a", 1000.0, quantity=2, seller_id=SELLER_A)
    _add_to_cart(BUYER, "prod-b", 500.0, quantity=1, seller_id=SELLER_B)
    current_domain.process(ToggleSelection(user_id=BUYER, product_id="prod-b"), asynchronous=False)
    return BUYER
