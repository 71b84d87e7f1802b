"""Cart management — opening and clearing a user's cart."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.cart.cart import ShoppingCart
from marketplace.domain import marketplace


def get_or_create_cart(repo, user_id):
    """Load the user's cart, creating an empty one on first access."""
    try:
        return repo.get(user_id)
    except ObjectNotFoundError:
        return ShoppingCart.create(user_id=user_id)


@marketplace.command(part_of="ShoppingCart")
class OpenCart:
    """Make sure the user has a cart; a no-op when one already exists."""

    user_id = Identifier(required=True)


@marketplace.command(part_of="ShoppingCart")
class ClearCart:
    user_id = Identifier(required=True)
    expected_revision = Integer()


@marketplace.command_handler(part_of=ShoppingCart)
class ManageCartHandler:
    @handle(OpenCart)
    def open_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        try:
            repo.get(command.user_id)
        except ObjectNotFoundError:
            repo.add(ShoppingCart.create(user_id=command.user_id))
        return str(command.user_id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = get_or_create_cart(repo, command.user_id)
        cart.assert_revision(command.expected_revision)
        cart.clear()
        repo.add(cart)
