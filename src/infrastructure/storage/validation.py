"""Input checks shared by every backend adapter."""

import math

from src.core.entities.product import MovementType, ProductDraft, ProductUpdate
from src.core.exceptions import InvalidQuantityError, ValidationError

PRICE_FIELDS = ("price", "price_50", "price_70", "price_100")


def _check_prices(values: dict) -> None:
    for name in PRICE_FIELDS:
        value = values.get(name)
        if value is not None and not math.isfinite(value):
            raise ValidationError(name, "Price must be a valid number", value)


def validate_draft(draft: ProductDraft) -> dict:
    """Return the draft as a column dict with a trimmed name."""
    if not draft.name or not draft.name.strip():
        raise ValidationError("name", "Product name is required", draft.name)
    values = draft.model_dump()
    values["name"] = draft.name.strip()
    if values.get("barcode") is not None:
        values["barcode"] = values["barcode"].strip() or None
    _check_prices(values)
    return values


def validate_update(product_id: str, update: ProductUpdate) -> dict:
    validate_product_id(product_id)
    changes = update.changes()
    if "name" in changes:
        name = changes["name"]
        if name is None or not name.strip():
            raise ValidationError("name", "Product name cannot be empty", name)
        changes["name"] = name.strip()
    _check_prices(changes)
    return changes


def validate_product_id(product_id: str) -> None:
    if not product_id or not str(product_id).strip():
        raise ValidationError("product_id", "Product ID is required", product_id)


def validate_movement(product_id: str, quantity: int, movement_type: MovementType) -> None:
    validate_product_id(product_id)
    if (
        isinstance(quantity, bool)
        or not isinstance(quantity, (int, float))
        or not math.isfinite(quantity)
        or quantity <= 0
    ):
        raise InvalidQuantityError(quantity)
    if not isinstance(movement_type, MovementType):
        raise ValidationError("type", "Type must be IN or OUT", movement_type)
