"""Cart management — commands and handler.

Handles cart creation, contact email, and abandonment.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart, CartStatus
from storefront.cart.owner import OwnerType, owner_from
from storefront.config import get_settings
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Cart")
class CreateCart:
    """Open a cart for an anonymous session or a signed-in customer."""

    owner_type = String(required=True, choices=OwnerType)
    owner_reference = String(required=True, max_length=255)
    currency = String(max_length=3)


@storefront.command(part_of="Cart")
class SetCartEmail:
    cart_id = Identifier(required=True)
    email = String(required=True, max_length=254)


@storefront.command(part_of="Cart")
class AbandonCart:
    """Mark a cart as abandoned due to inactivity."""

    cart_id = Identifier(required=True)


@storefront.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        """Return the owner's active cart, opening a new one if there is none.

        Active carts that have outlived their TTL are abandoned first, so an
        owner never has two Active carts.
        """
        settings = get_settings()
        owner = owner_from(command.owner_type, command.owner_reference)
        repo = current_domain.repository_for(Cart)

        active_carts = (
            repo._dao.query.filter(
                owner_type=owner.owner_type.value,
                owner_reference=owner.reference,
                status=CartStatus.ACTIVE.value,
            )
            .all()
            .items
        )

        for cart in active_carts:
            if not cart.is_expired:
                logger.debug("Reusing active cart", cart_id=str(cart.id), owner_type=cart.owner_type)
                return str(cart.id)

            cart.abandon()
            repo.add(cart)
            logger.info("Abandoned expired cart", cart_id=str(cart.id))

        cart = Cart.create(
            owner=owner,
            currency=command.currency or settings.default_currency,
            ttl_days=settings.cart_ttl_days,
        )
        repo.add(cart)
        logger.info("Cart created", cart_id=str(cart.id), owner_type=cart.owner_type)
        return str(cart.id)

    @handle(SetCartEmail)
    def set_cart_email(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        cart.set_email(command.email)
        repo.add(cart)

    @handle(AbandonCart)
    def abandon_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        cart.abandon()
        repo.add(cart)
