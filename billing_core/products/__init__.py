"""Product catalog model."""

from .models import (
    IntervalUnit,
    Product,
    ProductFeature,
    ProductKind,
    ProductPrice,
    ProductPriceInterval,
    ProductSlug,
    find_product_by_price,
)

__all__ = [
    "IntervalUnit",
    "Product",
    "ProductFeature",
    "ProductKind",
    "ProductPrice",
    "ProductPriceInterval",
    "ProductSlug",
    "find_product_by_price",
]
