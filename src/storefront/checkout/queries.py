"""Checkout read side — session view and shipping quotes."""

from dataclasses import dataclass, field
from datetime import datetime

from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.checkout.session import CheckoutSession
from storefront.checkout.shipping import SHIPPING_METHODS
from storefront.config import get_settings


@dataclass(frozen=True)
class CheckoutView:
    checkout_id: str
    cart_id: str
    status: str
    shipping_address: dict | None
    billing_address: dict | None
    billing_same_as_shipping: bool
    shipping_method_id: str | None
    shipping_cost: float
    amount: float
    currency: str
    payment_intent_id: str | None
    payment_status: str | None
    order_id: str | None
    expires_at: datetime | None
    reserved_lines: list[tuple[str, int]] = field(default_factory=list)


@dataclass(frozen=True)
class ShippingQuote:
    method_id: str
    name: str
    cost: float
    estimated_days: str


def get_checkout(checkout_id) -> CheckoutView:
    """Current view of a session. An unswept session past its TTL reads as Expired."""
    session = current_domain.repository_for(CheckoutSession).get(checkout_id)

    return CheckoutView(
        checkout_id=str(session.id),
        cart_id=str(session.cart_id),
        status=session.effective_status,
        shipping_address=session.shipping_address.to_dict() if session.shipping_address else None,
        billing_address=session.billing_address.to_dict() if session.billing_address else None,
        billing_same_as_shipping=bool(session.billing_same_as_shipping),
        shipping_method_id=session.shipping_method_id,
        shipping_cost=session.shipping_cost or 0.0,
        amount=session.amount or 0.0,
        currency=session.currency,
        payment_intent_id=session.payment_intent_id,
        payment_status=session.payment_status,
        order_id=str(session.order_id) if session.order_id else None,
        expires_at=session.expires_at,
        reserved_lines=session.reservations,
    )


def get_shipping_methods(checkout_id) -> list[ShippingQuote]:
    """Every configured method, priced against the cart's current subtotal."""
    session = current_domain.repository_for(CheckoutSession).get(checkout_id)
    cart = current_domain.repository_for(Cart).get(session.cart_id)
    threshold = get_settings().free_shipping_threshold

    return [
        ShippingQuote(
            method_id=method.method_id,
            name=method.name,
            cost=method.cost_for(cart.subtotal, threshold),
            estimated_days=method.estimated_days,
        )
        for method in SHIPPING_METHODS.values()
    ]
