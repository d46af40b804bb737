"""Assemble the final imported recipe from its parts."""

from mealplanner.ingest.fetcher import source_hostname
from mealplanner.ingest.schemas import ImportedRecipe, RecipeDraft
from mealplanner.schemas import NormalizedIngredient


def assemble_recipe(
    draft: RecipeDraft,
    ingredients: list[NormalizedIngredient],
    source_url: str | None = None,
) -> ImportedRecipe:
    """
    Merge normalized ingredients and source metadata into a draft.

    Args:
        draft: Validated extractor output.
        ingredients: The draft's ingredients after unit normalization.
        source_url: URL the recipe was imported from, exactly as supplied.
            Text imports pass None and get no source fields.
    """
    return ImportedRecipe(
        **draft.model_dump(exclude={"ingredients"}),
        ingredients=ingredients,
        source_url=source_url,
        recipe_source=source_hostname(source_url) if source_url else None,
    )
