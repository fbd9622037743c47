"""Inventory list filter state."""

from enum import Enum

from pydantic import BaseModel


class SortField(str, Enum):
    NAME = "name"
    STOCK = "stock"
    PRICE = "price"
    CATEGORY = "category"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class InventoryFilters(BaseModel):
    """Ephemeral list filters. Defaults mean "show everything, by name"."""

    search_query: str = ""
    category: str = ""
    low_stock_only: bool = False
    sort_field: SortField = SortField.NAME
    sort_direction: SortDirection = SortDirection.ASC
