"""Catalog factory.

Provides get_catalog() / set_catalog() to swap implementations. The adapter
is chosen by the CATALOG_ADAPTER environment variable; ``fake`` (in-memory)
is the default.
"""

import os

from storefront.catalog.port import Catalog

_current_catalog: Catalog | None = None


def get_catalog() -> Catalog:
    """Return the current catalog. Defaults to FakeCatalog."""
    global _current_catalog
    if _current_catalog is None:
        adapter = os.environ.get("CATALOG_ADAPTER", "fake")
        if adapter == "fake":
            from storefront.catalog.fake_adapter import FakeCatalog

            _current_catalog = FakeCatalog()
        else:
            raise ValueError(f"Unknown catalog adapter: {adapter}")
    return _current_catalog


def set_catalog(catalog: Catalog) -> None:
    """Override the active catalog (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    """Reset to default catalog."""
    global _current_catalog
    _current_catalog = None
