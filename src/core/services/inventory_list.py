"""
Inventory list engine.

Holds the current filter state and turns the cached product collection
into a filtered, sorted view with category facets. Filtering and sorting
happen in memory; changing a filter never touches the backend.

Malformed stock or price values (NaN, infinity, non-numbers) are treated
as 0 so comparisons never see NaN.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.config import get_logger
from src.core.entities.filters import InventoryFilters, SortDirection, SortField
from src.core.entities.product import Product
from src.core.exceptions import ValidationError
from src.core.interfaces.backend import IBackendAdapter
from src.core.services.query_cache import PRODUCTS_KEY, QueryCache

logger = get_logger(__name__)

FILTER_KEYS = frozenset(InventoryFilters.model_fields)
SORT_KEYS = frozenset({"sort_field", "sort_direction"})


def sanitize_number(value: Any) -> float:
    """Finite numbers pass through; anything else becomes 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return float(value)


def is_low_stock(product: Product) -> bool:
    """Below a configured positive minimum. No minimum means never low."""
    current = sanitize_number(product.current_stock)
    minimum = sanitize_number(product.min_stock_level)
    return minimum > 0 and current < minimum


def matches_search(product: Product, query: str) -> bool:
    needle = query.strip().lower()
    if not needle:
        return True
    if needle in product.name.lower():
        return True
    return bool(product.barcode) and needle in product.barcode.lower()


def filter_products(products: Iterable[Product], filters: InventoryFilters) -> list[Product]:
    """Apply search, category and low-stock predicates (AND-composed)."""
    result = []
    for product in products:
        if not matches_search(product, filters.search_query):
            continue
        if filters.category and product.category != filters.category:
            continue
        if filters.low_stock_only and not is_low_stock(product):
            continue
        result.append(product)
    return result


def _sort_key(product: Product, sort_field: SortField) -> Any:
    if sort_field == SortField.NAME:
        return product.name.lower()
    if sort_field == SortField.CATEGORY:
        return (product.category or "").lower()
    if sort_field == SortField.STOCK:
        return sanitize_number(product.current_stock)
    return sanitize_number(product.price)


def sort_products(
    products: Iterable[Product],
    sort_field: SortField = SortField.NAME,
    direction: SortDirection = SortDirection.ASC,
) -> list[Product]:
    """
    Sort by one field. Ties keep product id order in both directions, so
    ascending and descending are exact reverses apart from tied runs.
    """
    ordered = sorted(products, key=lambda p: p.id)
    return sorted(
        ordered,
        key=lambda p: _sort_key(p, sort_field),
        reverse=direction == SortDirection.DESC,
    )


def collect_categories(products: Iterable[Product]) -> list[str]:
    """Distinct non-blank categories, sorted."""
    return sorted({p.category for p in products if p.category and p.category.strip()})


@dataclass
class LowStockAlert:
    product: Product
    current_stock: float
    min_stock: float
    stock_deficit: float


def low_stock_alerts(products: Iterable[Product]) -> list[LowStockAlert]:
    """Low-stock products with their deficit, most urgent first."""
    alerts = []
    for product in products:
        if not is_low_stock(product):
            continue
        current = sanitize_number(product.current_stock)
        minimum = sanitize_number(product.min_stock_level)
        alerts.append(
            LowStockAlert(
                product=product,
                current_stock=current,
                min_stock=minimum,
                stock_deficit=minimum - current,
            )
        )
    alerts.sort(key=lambda a: a.stock_deficit, reverse=True)
    return alerts


@dataclass
class InventoryView:
    """Filtered and sorted products plus facets."""

    products: list[Product]
    total_products: int
    filtered_count: int
    categories: list[str]
    filters: InventoryFilters
    has_active_filters: bool = False
    low_stock_count: int = 0
    loading_ids: list[str] = field(default_factory=list)


def has_active_filters(filters: InventoryFilters) -> bool:
    """True when any filter differs from its default."""
    return bool(
        filters.search_query
        or filters.category
        or filters.low_stock_only
        or filters.sort_field != SortField.NAME
        or filters.sort_direction != SortDirection.ASC
    )


class InventoryListEngine:
    """
    Filter state plus the product collection read model.

    The collection lives in the shared QueryCache under ("products", "all")
    and is reloaded once it goes stale or after refresh().
    """

    def __init__(self, backend: IBackendAdapter, cache: QueryCache) -> None:
        self._backend = backend
        self._cache = cache
        self._filters = InventoryFilters()

    @property
    def filters(self) -> InventoryFilters:
        return self._filters

    def update_filter(self, key: str, value: Any) -> InventoryFilters:
        """Patch a single filter key."""
        if key not in FILTER_KEYS:
            raise ValidationError(key, f"Unknown filter '{key}'", value)
        try:
            self._filters = InventoryFilters.model_validate(
                {**self._filters.model_dump(), key: value}
            )
        except PydanticValidationError as e:
            raise ValidationError(key, e.errors()[0]["msg"], value) from e
        return self._filters

    def reset_filters(self) -> InventoryFilters:
        self._filters = InventoryFilters()
        return self._filters

    def clear_filter(self, key: str) -> InventoryFilters:
        """Reset one filter to its default. Sort field and direction clear together."""
        if key not in FILTER_KEYS:
            raise ValidationError(key, f"Unknown filter '{key}'")
        defaults = InventoryFilters()
        keys = SORT_KEYS if key in SORT_KEYS else {key}
        self._filters = self._filters.model_copy(
            update={k: getattr(defaults, k) for k in keys}
        )
        return self._filters

    def has_active_filters(self) -> bool:
        return has_active_filters(self._filters)

    async def load_products(self, force: bool = False) -> list[Product]:
        """The full product collection, from cache while fresh."""
        return await self._cache.fetch(PRODUCTS_KEY, self._backend.get_all_products, force=force)

    async def refresh(self) -> list[Product]:
        return await self.load_products(force=True)

    def build_view(
        self, products: list[Product], loading_ids: Iterable[str] = ()
    ) -> InventoryView:
        filtered = filter_products(products, self._filters)
        ordered = sort_products(
            filtered, self._filters.sort_field, self._filters.sort_direction
        )
        return InventoryView(
            products=ordered,
            total_products=len(products),
            filtered_count=len(ordered),
            categories=collect_categories(products),
            filters=self._filters,
            has_active_filters=self.has_active_filters(),
            low_stock_count=sum(1 for p in products if is_low_stock(p)),
            loading_ids=sorted(loading_ids),
        )

    async def view(
        self, force: bool = False, loading_ids: Iterable[str] = ()
    ) -> InventoryView:
        """
        Current view. ``loading_ids`` names products with a stock change in
        flight so callers can disable their controls.
        """
        products = await self.load_products(force=force)
        return self.build_view(products, loading_ids)

    async def low_stock_alerts(self) -> list[LowStockAlert]:
        return low_stock_alerts(await self.load_products())
