"""Address value object shared by checkout sessions and orders."""

from protean.fields import String

from storefront.domain import storefront


@storefront.value_object
class Address:
    """A delivery or billing address captured during checkout.

    Copied onto the Order when it is placed, so later edits to a session or
    a customer's address book never change where a past order went.
    """

    name = String(required=True, max_length=255)
    line1 = String(required=True, max_length=255)
    line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    phone = String(max_length=30)
