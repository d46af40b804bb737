"""Common data schemas shared by the import pipeline and the API."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def quantity_text(v: Any) -> str | None:
    """Keep quantities as text; numbers become their shortest text form."""
    if v is None or isinstance(v, str):
        return v
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        if float(v).is_integer():
            return str(int(v))
        return str(v)
    raise ValueError("quantity must be text or a number")


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys, populated by either spelling."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ParsedIngredient(CamelModel):
    """Ingredient as produced by the extractor or supplied by a client."""

    name: str = Field(validation_alias=AliasChoices("name", "ingredientName", "ingredient_name"))
    quantity: str | None = None
    unit: str = ""
    notes: str | None = None
    category: str | None = None

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, v: Any) -> str | None:
        """Accept numeric quantities from extractors and clients."""
        return quantity_text(v)

    @field_validator("unit", mode="before")
    @classmethod
    def default_unit(cls, v: Any) -> str:
        """Treat a missing unit as empty."""
        if v is None:
            return ""
        return v


class NormalizedIngredient(ParsedIngredient):
    """Ingredient after unit normalization."""

    converted: bool = False
    original_quantity: str | None = None
    original_unit: str | None = None


class ConversionRecord(CamelModel):
    """One ingredient's before/after measure."""

    ingredient_name: str
    from_measure: str = Field(alias="from")
    to_measure: str = Field(alias="to")


class ConversionSummary(CamelModel):
    """How many ingredients unit normalization changed."""

    total: int = 0
    converted: int = 0
    unchanged: int = 0
    conversions: list[ConversionRecord] = Field(default_factory=list)
