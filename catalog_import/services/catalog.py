"""
Catalog storage contract used by the import pipeline.

The pipeline only ever looks products up by SKU, creates them from an
import row, or patches selected fields; everything else about the
catalog is owned elsewhere.
"""

from __future__ import annotations

import re
from typing import Any

from catalog_import.models import Product

# Import field -> Product attribute
FIELD_ATTRIBUTES: dict[str, str] = {
    "name": "name",
    "description": "description",
    "price_base": "base_price",
    "promo_price": "promo_price",
    "stock_quantity": "stock_quantity",
    "pack_size": "pack_size",
    "moq": "moq",
    "tax_rate": "tax_rate",
    "is_active": "is_active",
}


def slug_for_sku(sku: str) -> str:
    """Derive the product slug from its SKU: lowercase, other characters -> '-'."""
    return re.sub(r"[^a-z0-9]", "-", sku.lower())


def find_by_sku(sku: str, for_update: bool = False) -> Product | None:
    products = Product.objects.filter(sku=sku)
    if for_update:
        products = products.select_for_update()
    return products.first()


def current_value(product: Product, field_name: str) -> Any:
    return getattr(product, FIELD_ATTRIBUTES[field_name])


def create_entry(sku: str, values: dict[str, Any]) -> Product:
    """
    Insert a new product built from a full import row.

    Fields absent from the row fall back to the model defaults.
    Raises django.core.exceptions.ValidationError when the product does
    not pass model validation (including SKU/slug uniqueness).
    """
    product = Product(sku=sku, slug=slug_for_sku(sku))
    for field_name, value in values.items():
        setattr(product, FIELD_ATTRIBUTES[field_name], value)
    product.full_clean()
    product.save()
    return product


def update_entry(product: Product, changes: dict[str, Any]) -> Product:
    """Apply a partial patch of import field -> new value."""
    if not changes:
        return product
    attributes = [FIELD_ATTRIBUTES[f] for f in changes]
    for field_name, value in changes.items():
        setattr(product, FIELD_ATTRIBUTES[field_name], value)
    untouched = [
        f.name for f in Product._meta.concrete_fields if f.name not in attributes
    ]
    product.full_clean(exclude=untouched, validate_unique=False)
    product.save(update_fields=attributes + ["updated_at"])
    return product
