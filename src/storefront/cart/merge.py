"""Cart merge — folds a guest cart into a customer's cart on sign-in.

Shared variants have their quantities summed; other lines are copied over.
No stock or per-item cap is enforced here, so a merge never fails for
availability; both are re-checked when checkout starts. The guest cart is
kept with status Merged for audit.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart, CartStatus
from storefront.cart.owner import Anonymous, Identified
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Cart")
class MergeCart:
    guest_cart_id = Identifier(required=True)
    customer_cart_id = Identifier(required=True)


@storefront.command_handler(part_of=Cart)
class MergeCartHandler:
    @handle(MergeCart)
    def merge_cart(self, command):
        if str(command.guest_cart_id) == str(command.customer_cart_id):
            raise ValidationError({"customer_cart_id": ["A cart cannot be merged into itself"]})

        repo = current_domain.repository_for(Cart)
        guest = repo.get(command.guest_cart_id)
        customer = repo.get(command.customer_cart_id)

        if CartStatus(guest.status) == CartStatus.MERGED:
            logger.info(
                "Guest cart already merged",
                guest_cart_id=str(guest.id),
                merged_into=str(guest.merged_into),
            )
            return str(customer.id)

        if not isinstance(guest.owner, Anonymous):
            raise ValidationError({"guest_cart_id": ["Only anonymous carts can be merged"]})
        if not isinstance(customer.owner, Identified):
            raise ValidationError({"customer_cart_id": ["Carts can only be merged into a customer's cart"]})

        guest_items = list(guest.items)
        customer.absorb(guest_items)
        guest.mark_merged(customer.id, items_merged_count=len(guest_items))

        repo.add(customer)
        repo.add(guest)

        logger.info(
            "Guest cart merged",
            guest_cart_id=str(guest.id),
            customer_cart_id=str(customer.id),
            items_merged=len(guest_items),
        )
        return str(customer.id)
