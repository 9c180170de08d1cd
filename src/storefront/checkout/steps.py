"""Checkout address and shipping steps — commands and handler."""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.checkout.session import CheckoutSession
from storefront.checkout.shipping import find_method
from storefront.config import get_settings
from storefront.domain import storefront
from storefront.errors import BusinessError
from storefront.shared.address import Address

logger = structlog.get_logger(__name__)


@storefront.command(part_of="CheckoutSession")
class SetCheckoutAddresses:
    """Record addresses. Leaving out billing means billing is the shipping address."""

    checkout_id = Identifier(required=True)
    shipping_address = Text(required=True)  # JSON: address dict
    billing_address = Text()  # JSON: address dict


@storefront.command(part_of="CheckoutSession")
class SelectShippingMethod:
    checkout_id = Identifier(required=True)
    shipping_method_id = String(required=True, max_length=50)


@storefront.command_handler(part_of=CheckoutSession)
class CheckoutStepsHandler:
    @handle(SetCheckoutAddresses)
    def set_addresses(self, command):
        shipping = Address(**json.loads(command.shipping_address))
        billing = Address(**json.loads(command.billing_address)) if command.billing_address else None

        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.checkout_id)
        session.set_addresses(shipping, billing)
        repo.add(session)

        logger.info(
            "Checkout addresses set",
            checkout_id=str(session.id),
            billing_same_as_shipping=session.billing_same_as_shipping,
        )

    @handle(SelectShippingMethod)
    def select_shipping_method(self, command):
        method = find_method(command.shipping_method_id)
        if method is None:
            raise BusinessError(
                "INVALID_SHIPPING_METHOD",
                f"Unknown shipping method {command.shipping_method_id!r}",
            )

        repo = current_domain.repository_for(CheckoutSession)
        session = repo.get(command.checkout_id)
        cart = current_domain.repository_for(Cart).get(session.cart_id)

        cost = method.cost_for(cart.subtotal, get_settings().free_shipping_threshold)
        session.select_shipping_method(method.method_id, cost)
        repo.add(session)

        logger.info(
            "Shipping method selected",
            checkout_id=str(session.id),
            shipping_method_id=method.method_id,
            shipping_cost=cost,
        )
        return cost
