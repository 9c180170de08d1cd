"""In-memory catalog for development and testing.

Variants are registered at runtime; prices can be changed to exercise the
price-change warnings on carts.
"""

from dataclasses import replace

from protean.exceptions import ObjectNotFoundError

from storefront.catalog.port import Attributes, Catalog, Variant


class FakeCatalog(Catalog):
    """Dictionary-backed catalog."""

    def __init__(self) -> None:
        self._variants: dict[str, Variant] = {}
        self.calls: list[str] = []

    def add_variant(
        self,
        variant_id: str,
        unit_price: float,
        product_name: str = "Product",
        variant_name: str = "Default",
        sku: str | None = None,
        track_inventory: bool = True,
        allow_backorder: bool = False,
        attributes: Attributes | None = None,
    ) -> Variant:
        variant = Variant(
            variant_id=str(variant_id),
            unit_price=float(unit_price),
            product_name=product_name,
            variant_name=variant_name,
            sku=sku or f"SKU-{variant_id}".upper(),
            track_inventory=track_inventory,
            allow_backorder=allow_backorder,
            attributes=dict(attributes or {}),
        )
        self._variants[variant.variant_id] = variant
        return variant

    def set_price(self, variant_id: str, unit_price: float) -> None:
        variant = self.get_variant(variant_id)
        self._variants[variant.variant_id] = replace(variant, unit_price=float(unit_price))

    def get_variant(self, variant_id: str) -> Variant:
        self.calls.append(str(variant_id))
        try:
            return self._variants[str(variant_id)]
        except KeyError:
            raise ObjectNotFoundError({"_entity": f"Variant {variant_id} not found"}) from None
