"""Normalize ingredient quantities and units to metric."""

from mealplanner.normalize.units import (
    NormalizedQuantity,
    ParsedQuantity,
    UnitDefinition,
    UnitTable,
    convert_measure,
    get_unit_table,
    normalize_ingredient,
    normalize_ingredients,
    parse_quantity,
    summarize_conversions,
)

__all__ = [
    "NormalizedQuantity",
    "ParsedQuantity",
    "UnitDefinition",
    "UnitTable",
    "convert_measure",
    "get_unit_table",
    "normalize_ingredient",
    "normalize_ingredients",
    "parse_quantity",
    "summarize_conversions",
]
