"""Pydantic schemas for validating extracted recipe data."""

import re
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from mealplanner.schemas import CamelModel, NormalizedIngredient, ParsedIngredient

_MACRO_FIELDS = ("calories", "protein", "carbs", "fat", "fiber", "sugar", "sodium")


def _leading_number(v: Any) -> float | None:
    """Pull the first number out of values like 4, "4", "4 servings" or "25 min"."""
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return float(v)
    match = re.search(r"\d+(?:\.\d+)?", str(v))
    return float(match.group()) if match else None


class Macros(CamelModel):
    """Per-serving nutrition values."""

    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None
    fiber: float | None = None
    sugar: float | None = None
    sodium: float | None = None

    @field_validator(*_MACRO_FIELDS, mode="before")
    @classmethod
    def coerce_number(cls, v: Any) -> float | None:
        """Accept numbers with units attached, e.g. "12g"."""
        return _leading_number(v)


class RecipeDraft(CamelModel):
    """Structured recipe returned by an extractor, before normalization."""

    name: str = Field(validation_alias=AliasChoices("name", "recipeName", "recipe_name"))
    description: str | None = None
    servings: int | None = None
    prep_time_minutes: int | None = None
    cook_time_minutes: int | None = None
    cuisine_type: str | None = None
    image_url: str | None = None
    ingredients: list[ParsedIngredient]
    instructions: list[str] = Field(default_factory=list)
    macros: Macros | None = None

    @model_validator(mode="before")
    @classmethod
    def collect_flat_macros(cls, data: Any) -> Any:
        """Gather flat ``caloriesPerServing``-style keys into ``macros``."""
        if not isinstance(data, dict) or data.get("macros") is not None:
            return data
        flat = {
            field: data[f"{field}PerServing"]
            for field in _MACRO_FIELDS
            if data.get(f"{field}PerServing") is not None
        }
        if flat:
            data = {**data, "macros": flat}
        return data

    @field_validator("name")
    @classmethod
    def require_name(cls, v: str) -> str:
        """A draft without a name is not a recipe."""
        v = v.strip()
        if not v:
            raise ValueError("recipe name is empty")
        return v

    @field_validator("servings", "prep_time_minutes", "cook_time_minutes", mode="before")
    @classmethod
    def coerce_int(cls, v: Any) -> int | None:
        """Handle counts given as text."""
        number = _leading_number(v)
        return int(round(number)) if number is not None else None

    @field_validator("instructions", mode="before")
    @classmethod
    def flatten_instructions(cls, v: Any) -> list[str]:
        """Accept plain steps or step objects, dropping blanks."""
        if v is None:
            return []
        if isinstance(v, str):
            v = v.splitlines()

        steps: list[tuple[int, str]] = []
        for position, step in enumerate(v):
            if isinstance(step, dict):
                text = step.get("instruction") or step.get("text") or ""
                order = step.get("stepNumber") or step.get("step_number") or position + 1
            else:
                text = str(step)
                order = position + 1
            if text.strip():
                steps.append((int(order), text.strip()))

        return [text for _, text in sorted(steps, key=lambda s: s[0])]


class ImportedRecipe(RecipeDraft):
    """Recipe draft after unit normalization and source tagging."""

    ingredients: list[NormalizedIngredient]
    source_url: str | None = None
    recipe_source: str | None = None
