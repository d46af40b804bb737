"""API routes for the unit of measure catalogue."""

from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import field_validator

from mealplanner.logging_config import get_logger
from mealplanner.normalize.units import UnitDefinition, convert_measure, get_unit_table
from mealplanner.schemas import CamelModel, quantity_text

logger = get_logger(__name__)

router = APIRouter(prefix="/api/units", tags=["units"])


# Request/Response schemas
class UnitResponse(CamelModel):
    """A unit of measure and its metric conversion, if any."""

    code: str
    name: str
    plural_name: str | None = None
    category: str
    is_metric: bool
    aliases: list[str]
    target_unit: str | None = None
    factor: float | None = None
    offset: float = 0.0

    @classmethod
    def from_definition(cls, definition: UnitDefinition) -> "UnitResponse":
        """Build a response from a table definition."""
        return cls(
            code=definition.code,
            name=definition.name,
            plural_name=definition.plural_name,
            category=definition.category,
            is_metric=definition.is_metric,
            aliases=list(definition.aliases),
            target_unit=definition.target_unit,
            factor=definition.factor,
            offset=definition.offset,
        )


class UnitListResponse(CamelModel):
    """List of units."""

    units: list[UnitResponse]
    count_units: list[str]
    total: int


class UnitsByCategoryResponse(CamelModel):
    """Units grouped by category."""

    categories: dict[str, list[UnitResponse]]
    total: int


class ConvertRequest(CamelModel):
    """A single quantity to convert."""

    quantity: str | None = None
    unit: str = ""

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, v):
        return quantity_text(v)


class ConvertResponse(CamelModel):
    """Converted quantity."""

    quantity: str | None
    unit: str
    converted: bool
    category: str | None = None


# =============================================================================
# Unit Endpoints
# =============================================================================


@router.get("", response_model=UnitListResponse | UnitsByCategoryResponse)
async def list_units(
    metric_only: Annotated[
        bool, Query(alias="metricOnly", description="Only return metric units")
    ] = False,
    group_by_category: Annotated[
        bool, Query(alias="groupByCategory", description="Group units by category")
    ] = False,
) -> UnitListResponse | UnitsByCategoryResponse:
    """
    List the units the normalizer recognizes.

    Imperial units include their metric target and factor. Count units
    (clove, pinch, ...) are recognized but never converted.
    """
    table = get_unit_table()
    definitions = table.metric_units() if metric_only else list(table.definitions)

    if group_by_category:
        grouped = {
            category: [UnitResponse.from_definition(d) for d in members]
            for category, members in table.by_category(metric_only).items()
        }
        return UnitsByCategoryResponse(categories=grouped, total=len(definitions))

    return UnitListResponse(
        units=[UnitResponse.from_definition(d) for d in definitions],
        count_units=sorted(table.count_units),
        total=len(definitions),
    )


@router.post("/convert", response_model=ConvertResponse)
async def convert_unit(body: ConvertRequest) -> ConvertResponse:
    """Convert one quantity and unit to metric."""
    result = convert_measure(body.quantity, body.unit, get_unit_table())
    logger.debug(
        f"Convert {body.quantity} {body.unit} -> {result.quantity} {result.unit} "
        f"(converted={result.converted})"
    )

    return ConvertResponse(
        quantity=result.quantity,
        unit=result.unit,
        converted=result.converted,
        category=result.category,
    )
