"""Shared BDD fixtures and step definitions for the storefront."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then

from storefront.cart.cart import Cart
from storefront.cart.owner import Anonymous, Identified
from storefront.inventory import ledger
from storefront.operations import (
    add_item,
    create_cart,
    define_inventory,
    get_cart_details,
    get_checkout,
    set_cart_email,
)


@pytest.fixture()
def shop():
    """Ids and outcomes carried between steps."""
    return {"cart_id": None, "customer_cart_id": None, "checkout_ids": [], "order": None, "error": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the catalog sells "{variant_id}" at {price:f} with {on_hand:d} in stock'))
def _(catalog, variant_id, price, on_hand):
    catalog.add_variant(variant_id, price, product_name=variant_id.removeprefix("var-").title())
    define_inventory(variant_id, on_hand=on_hand)


@given(parsers.cfparse('a guest cart holding {first_qty:d} of "{first}" and {second_qty:d} of "{second}"'))
def _(shop, first_qty, first, second_qty, second):
    shop["cart_id"] = create_cart(Anonymous(session_id="sess-bdd"))
    add_item(shop["cart_id"], first, first_qty)
    add_item(shop["cart_id"], second, second_qty)


@given(parsers.cfparse('a customer cart holding {quantity:d} of "{variant_id}"'))
def _(shop, quantity, variant_id):
    shop["customer_cart_id"] = create_cart(Identified(customer_id="cust-bdd"))
    add_item(shop["customer_cart_id"], variant_id, quantity)


@given(parsers.cfparse('the cart contact email is "{email}"'))
def _(shop, email):
    set_cart_email(shop["cart_id"], email)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the cart is "{status}"'))
def _(shop, status):
    assert current_domain.repository_for(Cart).get(shop["cart_id"]).status == status


@then(parsers.cfparse("the cart subtotal is {subtotal:f}"))
def _(shop, subtotal):
    assert get_cart_details(shop["cart_id"]).subtotal == subtotal


@then(parsers.cfparse('the cart warns "{code}"'))
def _(shop, code):
    assert code in get_cart_details(shop["cart_id"]).warning_codes()


@then(parsers.cfparse('"{variant_id}" has {on_hand:d} on hand and {reserved:d} reserved'))
def _(variant_id, on_hand, reserved):
    level = ledger.stock_level(variant_id)
    assert (level.on_hand, level.reserved) == (on_hand, reserved)


@then(parsers.cfparse('the checkout is "{status}"'))
def _(shop, status):
    assert get_checkout(shop["checkout_ids"][-1]).status == status


@then(parsers.cfparse('the checkout fails with "{code}"'))
def _(shop, code):
    assert shop["error"] is not None
    assert shop["error"].code == code
