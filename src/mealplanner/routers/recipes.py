"""API routes for importing recipes and normalizing their units."""

from fastapi import APIRouter, Depends, Request
from pydantic import Field

from mealplanner.ingest.errors import ImportPipelineError, UnexpectedImportError
from mealplanner.ingest.extractors.claude import ClaudeRecipeExtractor
from mealplanner.ingest.fetcher import PageFetcher
from mealplanner.ingest.pipeline import RecipeImportPipeline
from mealplanner.ingest.schemas import ImportedRecipe
from mealplanner.logging_config import get_logger
from mealplanner.schemas import (
    CamelModel,
    ConversionSummary,
    NormalizedIngredient,
    ParsedIngredient,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/recipes", tags=["recipes"])


# Request/Response schemas
class ImportUrlRequest(CamelModel):
    """Request to import a recipe from a web page."""

    url: str | None = None


class ImportTextRequest(CamelModel):
    """Request to import a recipe from pasted text."""

    text: str | None = None


class ImportRecipeResponse(CamelModel):
    """Imported recipe draft, ready for the user to review and save."""

    recipe: ImportedRecipe
    conversion_summary: ConversionSummary


class NormalizeUnitsRequest(CamelModel):
    """Ingredients to convert to metric."""

    ingredients: list[ParsedIngredient] = Field(default_factory=list)


class NormalizeUnitsResponse(CamelModel):
    """Ingredients after conversion."""

    ingredients: list[NormalizedIngredient]
    conversion_summary: ConversionSummary


# Dependency to get the import pipeline
def get_import_pipeline(request: Request) -> RecipeImportPipeline:
    """Get the app-wide import pipeline, creating it on first use."""
    pipeline = getattr(request.app.state, "import_pipeline", None)
    if pipeline is None:
        pipeline = RecipeImportPipeline(PageFetcher(), ClaudeRecipeExtractor())
        request.app.state.import_pipeline = pipeline
    return pipeline


# =============================================================================
# Import Endpoints
# =============================================================================


@router.post("/import-url", response_model=ImportRecipeResponse)
async def import_recipe_from_url(
    body: ImportUrlRequest,
    pipeline: RecipeImportPipeline = Depends(get_import_pipeline),
) -> ImportRecipeResponse:
    """
    Import a recipe from a web page.

    Fetches the page, extracts the recipe with the AI extractor, converts
    imperial units to metric and tags the result with its source. Nothing
    is saved.
    """
    try:
        result = await pipeline.import_from_url(body.url)
    except ImportPipelineError:
        raise
    except Exception as e:
        logger.error(f"Failed to import recipe from {body.url}: {e}")
        raise UnexpectedImportError("Failed to import recipe from URL") from e

    return ImportRecipeResponse(recipe=result.recipe, conversion_summary=result.summary)


@router.post("/import-text", response_model=ImportRecipeResponse)
async def import_recipe_from_text(
    body: ImportTextRequest,
    pipeline: RecipeImportPipeline = Depends(get_import_pipeline),
) -> ImportRecipeResponse:
    """Import a recipe from pasted text. The result has no source URL."""
    try:
        result = await pipeline.import_from_text(body.text)
    except ImportPipelineError:
        raise
    except Exception as e:
        logger.error(f"Failed to import recipe from text: {e}")
        raise UnexpectedImportError("Failed to parse recipe text") from e

    return ImportRecipeResponse(recipe=result.recipe, conversion_summary=result.summary)


# =============================================================================
# Unit Normalization Endpoints
# =============================================================================


@router.post("/normalize-units", response_model=NormalizeUnitsResponse)
async def normalize_recipe_units(
    body: NormalizeUnitsRequest,
    pipeline: RecipeImportPipeline = Depends(get_import_pipeline),
) -> NormalizeUnitsResponse:
    """Convert a recipe's imperial ingredient units to metric."""
    logger.info(f"Normalizing units for {len(body.ingredients)} ingredients")

    ingredients, summary = pipeline.normalize(body.ingredients)
    return NormalizeUnitsResponse(ingredients=ingredients, conversion_summary=summary)
