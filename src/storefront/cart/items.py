"""Cart item management — commands and handler.

Prices and stock-tracking flags come from the catalog at the time of the
call. Stock checks here are advisory only; nothing is reserved.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from storefront.cart.availability import ensure_available
from storefront.cart.cart import Cart
from storefront.catalog import get_catalog
from storefront.config import get_settings
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Cart")
class AddToCart:
    cart_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="Cart")
class UpdateCartItem:
    """Change a line's quantity. Zero removes the line."""

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=0)


@storefront.command(part_of="Cart")
class RemoveFromCart:
    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)


@storefront.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        settings = get_settings()
        variant = get_catalog().get_variant(command.variant_id)

        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        item = cart.add_item(
            variant_id=variant.variant_id,
            quantity=command.quantity,
            unit_price=variant.unit_price,
            max_quantity=settings.max_item_quantity,
            ttl_days=settings.cart_ttl_days,
        )
        ensure_available(variant, item.quantity)

        repo.add(cart)
        logger.info(
            "Item added to cart",
            cart_id=str(cart.id),
            variant_id=variant.variant_id,
            quantity=command.quantity,
        )
        return str(item.id)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        settings = get_settings()
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)

        if command.quantity == 0:
            cart.remove_item(command.item_id, ttl_days=settings.cart_ttl_days)
            repo.add(cart)
            return None

        item = cart.get_item(command.item_id)
        variant = get_catalog().get_variant(item.variant_id)
        cart.update_item(
            item_id=command.item_id,
            quantity=command.quantity,
            unit_price=variant.unit_price,
            max_quantity=settings.max_item_quantity,
            ttl_days=settings.cart_ttl_days,
        )
        ensure_available(variant, command.quantity)

        repo.add(cart)
        return str(item.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        cart.remove_item(command.item_id, ttl_days=get_settings().cart_ttl_days)
        repo.add(cart)
