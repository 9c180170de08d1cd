import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from storefront.catalog import get_catalog, reset_catalog
from storefront.notifications import get_notifier, reset_notifier
from storefront.payments import get_gateway, reset_gateway


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    reset_catalog()
    reset_gateway()
    reset_notifier()

    with storefront_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture
def catalog():
    return get_catalog()


@pytest.fixture
def gateway():
    return get_gateway()


@pytest.fixture
def notifier():
    return get_notifier()


# ---------------------------------------------------------------------------
# Shop data
# ---------------------------------------------------------------------------
@pytest.fixture
def address():
    return {
        "name": "Jane Doe",
        "line1": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "postal_code": "62701",
        "country": "US",
    }


@pytest.fixture
def shirt(catalog):
    """A tracked variant priced 50.00 with 10 units on hand."""
    from storefront.operations import define_inventory

    catalog.add_variant("var-shirt", 50.0, product_name="T-Shirt", variant_name="Large / Blue", sku="TS-L-BLU")
    define_inventory("var-shirt", on_hand=10)
    return "var-shirt"


@pytest.fixture
def mug(catalog):
    """A tracked variant priced 15.00 with 20 units on hand."""
    from storefront.operations import define_inventory

    catalog.add_variant("var-mug", 15.0, product_name="Mug", variant_name="White", sku="MUG-WHT")
    define_inventory("var-mug", on_hand=20)
    return "var-mug"


@pytest.fixture
def cart_id():
    from storefront.cart.owner import Anonymous
    from storefront.operations import create_cart

    return create_cart(Anonymous(session_id="sess-001"))


@pytest.fixture
def ready_cart(cart_id, shirt, mug):
    """Cart with 2 shirts and 1 mug (subtotal 115.00) and a contact email."""
    from storefront.operations import add_item, set_cart_email

    add_item(cart_id, shirt, 2)
    add_item(cart_id, mug, 1)
    set_cart_email(cart_id, "jane@example.com")
    return cart_id
