"""Unit normalization and conversion utilities."""

import math
import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache

from mealplanner.logging_config import get_logger
from mealplanner.schemas import (
    ConversionRecord,
    ConversionSummary,
    NormalizedIngredient,
    ParsedIngredient,
)

logger = get_logger(__name__)


# =============================================================================
# Unit Conversion Table
# =============================================================================


@dataclass(frozen=True)
class UnitDefinition:
    """A unit of measure and, for imperial units, how to reach metric."""

    code: str
    name: str
    plural_name: str | None
    category: str  # "weight", "volume", "temperature", "count"
    is_metric: bool
    aliases: tuple[str, ...] = ()
    target_unit: str | None = None
    factor: float | None = None
    offset: float = 0.0  # subtracted before applying factor (temperature)
    exact_spellings: tuple[str, ...] = ()  # matched before case folding

    @property
    def is_convertible(self) -> bool:
        """Whether a quantity in this unit is rewritten to metric."""
        return not self.is_metric and self.factor is not None and self.target_unit is not None

    def to_metric(self, value: float) -> float:
        """Convert a value in this unit to its metric target unit."""
        if not self.is_convertible:
            raise ValueError(f"Unit '{self.code}' has no metric conversion")
        return (value - self.offset) * self.factor

    @property
    def spellings(self) -> tuple[str, ...]:
        """Every spelling this unit is recognized by."""
        names = (self.code, self.name, self.plural_name or "", *self.aliases)
        return tuple(n for n in names if n)


# Volume factors follow the US nutrition-label convention (1 cup = 240 ml).
UNIT_DEFINITIONS: tuple[UnitDefinition, ...] = (
    # Metric weight
    UnitDefinition("g", "gram", "grams", "weight", True, ("gm", "gms", "gr", "grammes")),
    UnitDefinition("kg", "kilogram", "kilograms", "weight", True, ("kilo", "kilos", "kgs")),
    UnitDefinition("mg", "milligram", "milligrams", "weight", True),
    # Metric volume
    UnitDefinition(
        "ml", "milliliter", "milliliters", "volume", True, ("millilitre", "millilitres", "mls")
    ),
    UnitDefinition("l", "liter", "liters", "volume", True, ("litre", "litres", "ltr", "lt")),
    UnitDefinition("dl", "deciliter", "deciliters", "volume", True, ("decilitre", "decilitres")),
    UnitDefinition(
        "cl", "centiliter", "centiliters", "volume", True, ("centilitre", "centilitres")
    ),
    # Metric temperature
    UnitDefinition(
        "°C",
        "celsius",
        None,
        "temperature",
        True,
        ("°c", "deg c", "degrees c", "degrees celsius"),
        exact_spellings=("C",),
    ),
    # Imperial weight
    UnitDefinition("oz", "ounce", "ounces", "weight", False, (), "g", 28.3495),
    UnitDefinition("lb", "pound", "pounds", "weight", False, ("lbs",), "g", 453.592),
    # US customary volume
    UnitDefinition("cup", "cup", "cups", "volume", False, ("c",), "ml", 240.0),
    UnitDefinition(
        "tbsp", "tablespoon", "tablespoons", "volume", False, ("tbs", "tbl", "tblsp"), "ml", 15.0
    ),
    UnitDefinition("tsp", "teaspoon", "teaspoons", "volume", False, ("tsps",), "ml", 5.0),
    UnitDefinition(
        "fl oz", "fluid ounce", "fluid ounces", "volume", False, ("floz", "fl ounce"), "ml", 30.0
    ),
    UnitDefinition("pint", "pint", "pints", "volume", False, ("pt",), "ml", 480.0),
    UnitDefinition("quart", "quart", "quarts", "volume", False, ("qt",), "ml", 960.0),
    UnitDefinition("gallon", "gallon", "gallons", "volume", False, ("gal",), "ml", 3840.0),
    # Imperial temperature
    UnitDefinition(
        "°F",
        "fahrenheit",
        None,
        "temperature",
        False,
        ("°f", "f", "deg f", "degrees f", "degrees fahrenheit"),
        "°C",
        5 / 9,
        32.0,
    ),
)

# Count-based units, recognized but never converted
COUNT_UNITS: tuple[str, ...] = (
    "piece", "pc", "pcs", "whole", "each", "ea",
    "clove", "slice", "bunch", "sprig", "head", "stalk", "leaf", "leaves", "rasher",
    "fillet", "breast", "thigh", "leg", "wing", "egg",
    "can", "tin", "jar", "bottle", "pack", "packet", "pkg", "package", "bag", "box",
    "sheet", "stick", "pod", "cube", "loaf", "loaves", "dozen", "doz",
    "pinch", "dash", "handful", "splash", "drizzle",
    "small", "medium", "large", "to taste",
)  # fmt: skip


def canonical_unit_token(unit: str | None) -> str:
    """
    Reduce a unit string to the form used for table lookups.

    Lower-cases, drops periods, collapses whitespace and folds the
    masculine ordinal sign that is often typed in place of a degree sign.
    """
    if not unit:
        return ""
    token = unit.lower().replace(".", " ").replace("º", "°")
    token = " ".join(token.split())
    return token.replace("° ", "°")


class UnitTable:
    """Read-only lookup of unit definitions by any of their spellings."""

    def __init__(
        self,
        definitions: Iterable[UnitDefinition] = UNIT_DEFINITIONS,
        count_units: Iterable[str] = COUNT_UNITS,
    ):
        self._definitions = tuple(definitions)
        self._by_spelling: dict[str, UnitDefinition] = {}
        self._by_exact_spelling: dict[str, UnitDefinition] = {}

        for definition in self._definitions:
            for spelling in definition.spellings:
                self._by_spelling[canonical_unit_token(spelling)] = definition
            for spelling in definition.exact_spellings:
                self._by_exact_spelling[spelling] = definition

        self._count_units = frozenset(canonical_unit_token(u) for u in count_units)

    @property
    def definitions(self) -> tuple[UnitDefinition, ...]:
        """All measured (non-count) unit definitions."""
        return self._definitions

    @property
    def count_units(self) -> frozenset[str]:
        """Count-style unit spellings."""
        return self._count_units

    def _candidates(self, token: str) -> list[str]:
        candidates = [token]
        if token.endswith("es") and len(token) > 3:
            candidates.append(token[:-2])
        if token.endswith("s") and len(token) > 1:
            candidates.append(token[:-1])
        return candidates

    def lookup(self, unit: str | None) -> UnitDefinition | None:
        """
        Find the definition for a unit string, tolerating case and plurals.

        Exact spellings win over case-folded ones, so a bare "C" is Celsius
        while "c" and "C." are cups.
        """
        if unit and unit.strip() in self._by_exact_spelling:
            return self._by_exact_spelling[unit.strip()]
        token = canonical_unit_token(unit)
        if not token:
            return None
        for candidate in self._candidates(token):
            if candidate in self._by_spelling:
                return self._by_spelling[candidate]
        return None

    def is_count_unit(self, unit: str | None) -> bool:
        """Check whether a unit is a count-style unit such as 'clove' or 'pinch'."""
        token = canonical_unit_token(unit)
        return any(c in self._count_units for c in self._candidates(token)) if token else False

    def metric_units(self) -> list[UnitDefinition]:
        """Metric definitions only."""
        return [d for d in self._definitions if d.is_metric]

    def by_category(self, metric_only: bool = False) -> dict[str, list[UnitDefinition]]:
        """Group definitions by category, keeping table order."""
        definitions = self.metric_units() if metric_only else self._definitions
        grouped: dict[str, list[UnitDefinition]] = {}
        for definition in definitions:
            grouped.setdefault(definition.category, []).append(definition)
        return grouped


@lru_cache
def get_unit_table() -> UnitTable:
    """Get the process-wide unit table, built on first use."""
    table = UnitTable()
    logger.debug(f"Unit table loaded with {len(table.definitions)} definitions")
    return table


# =============================================================================
# Quantity Parsing
# =============================================================================

UNICODE_FRACTIONS: dict[str, float] = {
    "½": 1 / 2,
    "⅓": 1 / 3,
    "⅔": 2 / 3,
    "¼": 1 / 4,
    "¾": 3 / 4,
    "⅕": 1 / 5,
    "⅖": 2 / 5,
    "⅗": 3 / 5,
    "⅘": 4 / 5,
    "⅙": 1 / 6,
    "⅚": 5 / 6,
    "⅛": 1 / 8,
    "⅜": 3 / 8,
    "⅝": 5 / 8,
    "⅞": 7 / 8,
}

_FRAC_CHARS = "".join(UNICODE_FRACTIONS)
_VALUE = (
    rf"(?:\d+\s+\d+/[1-9]\d*"  # mixed: 1 1/2
    rf"|\d+/[1-9]\d*"  # fraction: 1/2
    rf"|\d*\s*[{_FRAC_CHARS}]"  # unicode: ½, 1½, 1 ½
    rf"|\d+(?:\.\d+|,\d{{1,2}})?)"  # integer or decimal
)
_SINGLE_RE = re.compile(rf"^\s*({_VALUE})\s*$")
_RANGE_RE = re.compile(rf"^\s*({_VALUE})(\s*(?:-|–|—)\s*|\s+to\s+)({_VALUE})\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class ParsedQuantity:
    """A numeric quantity or a range of two."""

    low: float
    high: float | None = None
    separator: str | None = None

    @property
    def is_range(self) -> bool:
        """Check if this quantity is a range like '2-3'."""
        return self.high is not None

    @property
    def values(self) -> tuple[float, ...]:
        """Endpoints in order."""
        if self.high is None:
            return (self.low,)
        return (self.low, self.high)


def _parse_value(text: str) -> float:
    """Parse a single value already matched by the quantity grammar."""
    text = text.strip()

    if text[-1] in UNICODE_FRACTIONS:
        whole = text[:-1].strip()
        return (float(whole) if whole else 0.0) + UNICODE_FRACTIONS[text[-1]]

    if "/" in text:
        parts = text.split()
        whole = float(parts[0]) if len(parts) == 2 else 0.0
        num, denom = parts[-1].split("/")
        return whole + float(num) / float(denom)

    return float(text.replace(",", "."))


def parse_quantity(quantity: str | None) -> ParsedQuantity | None:
    """
    Parse a quantity string.

    Handles formats like:
    - "2", "1.5", "1,5"
    - "1/2", "1 1/2"
    - "½", "1½"
    - "2-3", "2 - 3", "2–3", "2 to 3" (ranges keep their separator)

    Returns None when the text is not a number (e.g. "a pinch", "to taste").
    """
    if not quantity:
        return None

    if match := _RANGE_RE.match(quantity):
        return ParsedQuantity(
            low=_parse_value(match.group(1)),
            high=_parse_value(match.group(3)),
            separator=match.group(2),
        )

    if match := _SINGLE_RE.match(quantity):
        return ParsedQuantity(low=_parse_value(match.group(1)))

    return None


# =============================================================================
# Rounding and Formatting
# =============================================================================

# unit -> (threshold, places at or above threshold, places below threshold)
_ROUNDING: dict[str, tuple[float, int, int]] = {
    "g": (10.0, 0, 1),
    "ml": (10.0, 0, 1),
    "kg": (0.0, 2, 2),
    "l": (0.0, 2, 2),
    "°C": (0.0, 0, 0),
}

_LARGER_UNIT: dict[str, str] = {"g": "kg", "ml": "l"}

# Converted values above this are left unconverted rather than rounded
MAX_METRIC_VALUE = 1e9


def round_metric(value: float, unit: str) -> Decimal:
    """
    Round a converted value for recipe use.

    g and ml: whole numbers from 10 up, one decimal below 10.
    kg and l: two decimals. °C: whole degrees. Halves round away from zero.
    """
    threshold, coarse, fine = _ROUNDING.get(unit, (0.0, 2, 2))
    places = coarse if abs(value) >= threshold else fine
    exponent = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)
    if rounded == 0:
        rounded = abs(rounded)
    return rounded


def format_number(value: Decimal | float) -> str:
    """Render a number without trailing zeros."""
    text = f"{Decimal(str(value)):f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _scale_to_display_unit(values: tuple[float, ...], unit: str) -> tuple[tuple[float, ...], str]:
    """
    Move large gram/millilitre values to kg/l, using one unit for every endpoint.

    The switch is decided on the rounded value, so 999.6 g becomes 1 kg.
    """
    larger = _LARGER_UNIT.get(unit)
    if larger and max(abs(round_metric(v, unit)) for v in values) >= 1000:
        return tuple(v / 1000 for v in values), larger
    return values, unit


# =============================================================================
# Conversion
# =============================================================================


@dataclass(frozen=True)
class NormalizedQuantity:
    """Result of converting one quantity and unit."""

    quantity: str | None
    unit: str
    converted: bool
    category: str | None = None

    def to_display_string(self) -> str:
        """Human-readable 'quantity unit' string."""
        return _measure_text(self.quantity, self.unit)


def convert_measure(
    quantity: str | None,
    unit: str | None,
    table: UnitTable | None = None,
) -> NormalizedQuantity:
    """
    Convert an imperial quantity and unit to metric.

    Unknown, metric and count units, as well as non-numeric quantities and
    quantities too large to convert (above MAX_METRIC_VALUE once converted),
    come back unchanged with converted=False.
    """
    table = table or get_unit_table()
    unit = unit or ""
    definition = table.lookup(unit)

    if definition is None:
        category = "count" if table.is_count_unit(unit) else None
        return NormalizedQuantity(quantity=quantity, unit=unit, converted=False, category=category)

    if not definition.is_convertible:
        return NormalizedQuantity(
            quantity=quantity, unit=unit, converted=False, category=definition.category
        )

    parsed = parse_quantity(quantity)
    if parsed is None:
        return NormalizedQuantity(
            quantity=quantity, unit=unit, converted=False, category=definition.category
        )

    metric_values = tuple(definition.to_metric(v) for v in parsed.values)
    if not all(math.isfinite(v) and abs(v) <= MAX_METRIC_VALUE for v in metric_values):
        logger.debug(f"Quantity out of range, left unconverted: {quantity!r} {unit}")
        return NormalizedQuantity(
            quantity=quantity, unit=unit, converted=False, category=definition.category
        )

    display_values, display_unit = _scale_to_display_unit(metric_values, definition.target_unit)
    rendered = [format_number(round_metric(v, display_unit)) for v in display_values]

    if parsed.is_range:
        new_quantity = f"{rendered[0]}{parsed.separator}{rendered[1]}"
    else:
        new_quantity = rendered[0]

    return NormalizedQuantity(
        quantity=new_quantity,
        unit=display_unit,
        converted=True,
        category=definition.category,
    )


def normalize_ingredient(
    ingredient: ParsedIngredient,
    table: UnitTable | None = None,
) -> NormalizedIngredient:
    """
    Normalize one ingredient's quantity and unit to metric.

    Name, notes and category are never changed. An ingredient that is not
    converted comes back with its fields exactly as given; an ingredient
    that was already normalized keeps its conversion record.
    """
    result = convert_measure(ingredient.quantity, ingredient.unit, table)

    if not result.converted:
        if result.category is None and ingredient.unit:
            logger.debug(f"Unknown unit '{ingredient.unit}' for '{ingredient.name}'")
        return NormalizedIngredient.model_validate(ingredient.model_dump())

    logger.debug(
        f"Converted: {ingredient.quantity} {ingredient.unit} -> "
        f"{result.quantity} {result.unit} ({ingredient.name})"
    )
    return NormalizedIngredient(
        **ingredient.model_dump(
            exclude={"quantity", "unit", "converted", "original_quantity", "original_unit"}
        ),
        quantity=result.quantity,
        unit=result.unit,
        converted=True,
        original_quantity=ingredient.quantity,
        original_unit=ingredient.unit,
    )


def normalize_ingredients(
    ingredients: Iterable[ParsedIngredient],
    table: UnitTable | None = None,
) -> list[NormalizedIngredient]:
    """Normalize every ingredient in a recipe."""
    table = table or get_unit_table()
    return [normalize_ingredient(ing, table) for ing in ingredients]


def summarize_conversions(ingredients: Iterable[NormalizedIngredient]) -> ConversionSummary:
    """Count how many ingredients normalization changed."""
    ingredients = list(ingredients)
    converted = [i for i in ingredients if i.converted]

    return ConversionSummary(
        total=len(ingredients),
        converted=len(converted),
        unchanged=len(ingredients) - len(converted),
        conversions=[
            ConversionRecord(
                ingredient_name=i.name,
                from_measure=_measure_text(i.original_quantity, i.original_unit),
                to_measure=_measure_text(i.quantity, i.unit),
            )
            for i in converted
        ],
    )


def _measure_text(quantity: str | None, unit: str | None) -> str:
    return " ".join(p for p in (quantity, unit) if p)
