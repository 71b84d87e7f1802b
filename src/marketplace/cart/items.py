"""Cart line management — commands and handler."""

from protean import handle
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.cart.cart import ShoppingCart
from marketplace.cart.management import get_or_create_cart
from marketplace.domain import marketplace


@marketplace.command(part_of="ShoppingCart")
class AddToCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    seller_id = Identifier(required=True)
    image = String(max_length=1024)
    quantity = Integer(default=1, min_value=1)
    expected_revision = Integer()


@marketplace.command(part_of="ShoppingCart")
class SetCartQuantity:
    """Set a line's quantity; anything below 1 is clamped to 1."""

    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    expected_revision = Integer()


@marketplace.command(part_of="ShoppingCart")
class RemoveFromCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    expected_revision = Integer()


@marketplace.command_handler(part_of=ShoppingCart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = get_or_create_cart(repo, command.user_id)
        cart.assert_revision(command.expected_revision)
        cart.add_item(
            product_id=command.product_id,
            name=command.name,
            unit_price=command.unit_price,
            seller_id=command.seller_id,
            image=command.image,
            quantity=command.quantity or 1,
        )
        repo.add(cart)

    @handle(SetCartQuantity)
    def set_cart_quantity(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = get_or_create_cart(repo, command.user_id)
        cart.assert_revision(command.expected_revision)
        if cart.set_quantity(product_id=command.product_id, quantity=command.quantity):
            repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = get_or_create_cart(repo, command.user_id)
        cart.assert_revision(command.expected_revision)
        if cart.remove_item(product_id=command.product_id):
            repo.add(cart)
