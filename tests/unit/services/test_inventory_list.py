"""Unit tests for the inventory list engine."""

import math

import pytest

from src.core.entities import InventoryFilters, Product, SortDirection, SortField
from src.core.exceptions import ValidationError
from src.core.services import InventoryListEngine, QueryCache, is_low_stock, sanitize_number
from src.core.services.inventory_list import (
    collect_categories,
    filter_products,
    low_stock_alerts,
    sort_products,
)


def make(pid: str, name: str, **kwargs) -> Product:
    return Product(id=pid, name=name, **kwargs)


@pytest.fixture
def engine(backend, cache) -> InventoryListEngine:
    return InventoryListEngine(backend, cache)


class TestSanitize:
    @pytest.mark.parametrize(
        "value,expected",
        [(3, 3.0), (2.5, 2.5), (None, 0.0), ("7", 0.0), (math.nan, 0.0), (math.inf, 0.0), (True, 0.0)],
    )
    def test_sanitize_number(self, value, expected):
        assert sanitize_number(value) == expected


class TestLowStock:
    def test_below_positive_minimum(self):
        assert is_low_stock(make("1", "Milk", current_stock=2, min_stock_level=5))

    def test_zero_or_missing_minimum_never_low(self):
        assert not is_low_stock(make("1", "A", current_stock=0, min_stock_level=0))
        assert not is_low_stock(make("2", "B", current_stock=-3))

    def test_equal_to_minimum_is_not_low(self):
        assert not is_low_stock(make("1", "A", current_stock=5, min_stock_level=5))

    def test_malformed_stock_counts_as_zero(self):
        product = make("1", "A", current_stock="abc", min_stock_level=1)
        assert math.isnan(product.current_stock)
        assert is_low_stock(product)


class TestFilterAndSort:
    def test_milk_and_bread_example(self, milk, bread):
        products = [milk, bread]

        low = filter_products(products, InventoryFilters(low_stock_only=True))
        by_stock = sort_products(products, SortField.STOCK, SortDirection.ASC)

        assert [p.name for p in low] == ["Milk"]
        assert [p.name for p in by_stock] == ["Milk", "Bread"]

    def test_search_matches_name_or_barcode_case_insensitive(self, milk, bread):
        assert filter_products([milk, bread], InventoryFilters(search_query="MIL")) == [milk]
        assert filter_products([milk, bread], InventoryFilters(search_query="00000012")) == [bread]

    def test_category_is_exact(self, milk, bread):
        assert filter_products([milk, bread], InventoryFilters(category="Dairy")) == [milk]
        assert filter_products([milk, bread], InventoryFilters(category="dairy")) == []

    def test_filters_compose(self, milk, bread):
        filters = InventoryFilters(search_query="b", low_stock_only=True)
        assert filter_products([milk, bread], filters) == []

    def test_filtering_is_idempotent(self, milk, bread):
        filters = InventoryFilters(search_query="i", low_stock_only=False)
        once = filter_products([milk, bread], filters)
        assert filter_products(once, filters) == once

    def test_descending_is_reverse_of_ascending_without_ties(self):
        products = [
            make("a", "Cheese", category="Dairy", price=3.0, current_stock=1),
            make("b", "Apples", category="Fruit", price=1.0, current_stock=7),
            make("c", "Beer", category="Drinks", price=2.0, current_stock=4),
        ]
        for sort_field in SortField:
            asc = sort_products(products, sort_field, SortDirection.ASC)
            desc = sort_products(products, sort_field, SortDirection.DESC)
            assert desc == list(reversed(asc))

    def test_ties_ordered_by_id_in_both_directions(self):
        products = [make("b", "X", price=1.0), make("a", "Y", price=1.0)]

        asc = sort_products(products, SortField.PRICE, SortDirection.ASC)
        desc = sort_products(products, SortField.PRICE, SortDirection.DESC)

        assert [p.id for p in asc] == ["a", "b"]
        assert [p.id for p in desc] == ["a", "b"]

    def test_malformed_price_sorts_as_zero(self):
        products = [make("1", "A", price=2.0), make("2", "B", price=math.nan)]
        ordered = sort_products(products, SortField.PRICE, SortDirection.ASC)
        assert [p.id for p in ordered] == ["2", "1"]

    def test_categories_are_distinct_sorted_non_blank(self):
        products = [
            make("1", "A", category="Snacks"),
            make("2", "B", category="Dairy"),
            make("3", "C", category="Snacks"),
            make("4", "D", category="  "),
            make("5", "E"),
        ]
        assert collect_categories(products) == ["Dairy", "Snacks"]

    def test_low_stock_alerts_ordered_by_deficit(self):
        products = [
            make("1", "A", current_stock=4, min_stock_level=5),
            make("2", "B", current_stock=0, min_stock_level=10),
            make("3", "C", current_stock=9, min_stock_level=3),
        ]
        alerts = low_stock_alerts(products)
        assert [a.product.id for a in alerts] == ["2", "1"]
        assert alerts[0].stock_deficit == 10


class TestEngine:
    async def test_view_with_defaults(self, engine: InventoryListEngine):
        view = await engine.view()

        assert [p.name for p in view.products] == ["Bread", "Milk"]
        assert view.total_products == 2
        assert view.filtered_count == 2
        assert view.categories == ["Bakery", "Dairy"]
        assert view.has_active_filters is False
        assert view.low_stock_count == 1

    async def test_filter_changes_do_not_hit_backend(self, engine: InventoryListEngine, backend):
        await engine.view()
        engine.update_filter("low_stock_only", True)
        view = await engine.view()

        assert [p.name for p in view.products] == ["Milk"]
        assert view.filtered_count <= view.total_products
        assert backend.count("get_all_products") == 1

    async def test_refresh_reloads(self, engine: InventoryListEngine, backend):
        await engine.view()
        await engine.refresh()
        assert backend.count("get_all_products") == 2

    def test_update_filter_validates(self, engine: InventoryListEngine):
        with pytest.raises(ValidationError):
            engine.update_filter("colour", "red")
        with pytest.raises(ValidationError):
            engine.update_filter("sort_field", "weight")

    def test_sort_filters_clear_together(self, engine: InventoryListEngine):
        engine.update_filter("sort_field", "price")
        engine.update_filter("sort_direction", "desc")
        engine.update_filter("search_query", "milk")

        filters = engine.clear_filter("sort_direction")

        assert filters.sort_field == SortField.NAME
        assert filters.sort_direction == SortDirection.ASC
        assert filters.search_query == "milk"
        assert engine.has_active_filters()

        engine.reset_filters()
        assert not engine.has_active_filters()

    async def test_low_stock_alerts(self, engine: InventoryListEngine):
        alerts = await engine.low_stock_alerts()
        assert [a.product.name for a in alerts] == ["Milk"]
        assert alerts[0].stock_deficit == 3


async def test_shared_cache_between_engines(backend):
    cache = QueryCache()
    first = InventoryListEngine(backend, cache)
    second = InventoryListEngine(backend, cache)

    await first.view()
    await second.view()

    assert backend.count("get_all_products") == 1
