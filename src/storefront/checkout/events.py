"""Domain events for the CheckoutSession aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="CheckoutSession")
class CheckoutStarted:
    __version__ = 1

    checkout_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    expires_at = DateTime(required=True)


@storefront.event(part_of="CheckoutSession")
class CheckoutAddressesSet:
    __version__ = 1

    checkout_id = Identifier(required=True)
    shipping_country = String(required=True)
    billing_same_as_shipping = Boolean(default=False)


@storefront.event(part_of="CheckoutSession")
class ShippingMethodSelected:
    __version__ = 1

    checkout_id = Identifier(required=True)
    shipping_method_id = String(required=True)
    shipping_cost = Float(required=True)


@storefront.event(part_of="CheckoutSession")
class CheckoutPaymentAuthorized:
    __version__ = 1

    checkout_id = Identifier(required=True)
    payment_intent_id = String(required=True)
    payment_status = String(required=True)
    amount = Float(required=True)
    reserved_line_count = Integer(required=True)


@storefront.event(part_of="CheckoutSession")
class CheckoutCompleted:
    __version__ = 1

    checkout_id = Identifier(required=True)
    cart_id = Identifier(required=True)
    order_id = Identifier(required=True)
    completed_at = DateTime(required=True)


@storefront.event(part_of="CheckoutSession")
class CheckoutCancelled:
    __version__ = 1

    checkout_id = Identifier(required=True)
    released_line_count = Integer(required=True)
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="CheckoutSession")
class CheckoutExpired:
    __version__ = 1

    checkout_id = Identifier(required=True)
    released_line_count = Integer(required=True)
    expired_at = DateTime(required=True)
