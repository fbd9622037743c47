"""Store price selection by markup tier."""

import math

from src.core.entities.product import DEFAULT_MARKUP, MarkupTier, Product, ProductDraft


def tier_price_field(tier: MarkupTier) -> str:
    return f"price_{tier.value}"


def display_price(product: Product, default: MarkupTier = DEFAULT_MARKUP) -> float | None:
    """
    The price shown in the store: the tier price picked by the product's
    markup, falling back to the base price when that tier is not set.
    """
    tier = product.markup or default
    tier_price = getattr(product, tier_price_field(tier))
    return tier_price if tier_price is not None else product.price


def tier_prices(base_price: float) -> dict[str, float]:
    """Compute every tier price from a base price."""
    return {
        tier_price_field(tier): round(base_price * (1 + tier.value / 100), 2)
        for tier in MarkupTier
    }


def with_tier_prices(draft: ProductDraft) -> ProductDraft:
    """Fill the tier prices a draft leaves empty. Given tier prices are kept."""
    if draft.price is None or not math.isfinite(draft.price):
        return draft
    missing = {
        name: value
        for name, value in tier_prices(draft.price).items()
        if getattr(draft, name) is None
    }
    return draft.model_copy(update=missing) if missing else draft
