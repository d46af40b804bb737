"""Recipe import pipeline: fetch, extract, normalize units, assemble."""

from collections.abc import Iterable
from dataclasses import dataclass

from mealplanner.ingest.assembler import assemble_recipe
from mealplanner.ingest.errors import ExtractionError, ImportPipelineError, InvalidInputError
from mealplanner.ingest.extractors.base import RecipeExtractor
from mealplanner.ingest.fetcher import PageFetcher, source_hostname, validate_source_url
from mealplanner.ingest.schemas import ImportedRecipe, RecipeDraft
from mealplanner.logging_config import LoggingContext, get_logger
from mealplanner.normalize.units import (
    UnitTable,
    get_unit_table,
    normalize_ingredients,
    summarize_conversions,
)
from mealplanner.schemas import ConversionSummary, NormalizedIngredient, ParsedIngredient

logger = get_logger(__name__)


@dataclass
class ImportResult:
    """An imported recipe and what unit normalization did to it."""

    recipe: ImportedRecipe
    summary: ConversionSummary


class RecipeImportPipeline:
    """
    Runs one recipe import end to end.

    Each call is independent: one fetch, one extraction, one normalization
    pass. Nothing is retried and nothing is persisted; any failure aborts
    the import with an ImportPipelineError.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        extractor: RecipeExtractor,
        unit_table: UnitTable | None = None,
    ):
        self.fetcher = fetcher
        self.extractor = extractor
        self.unit_table = unit_table or get_unit_table()

    async def import_from_url(self, url: str | None) -> ImportResult:
        """
        Import a recipe from a web page.

        Raises:
            InvalidInputError: Missing or malformed URL (before any request).
            UpstreamFetchError: The page answered with a non-success status.
            ExtractionError: The extractor failed or returned an unusable draft.
        """
        parsed = validate_source_url(url)
        page_url = url.strip()

        with LoggingContext(source_host=source_hostname(parsed)):
            logger.info(f"Importing recipe from {page_url}")
            html = await self.fetcher.fetch(page_url)

            try:
                draft = await self.extractor.extract(page_url, html)
            except ImportPipelineError:
                raise
            except Exception as e:
                logger.error(f"Extractor {self.extractor.name} failed: {e}")
                raise ExtractionError("Failed to extract recipe") from e

            # sourceUrl echoes the input exactly as given
            return self._finish(draft, url)

    async def import_from_text(self, text: str | None) -> ImportResult:
        """
        Import a recipe from pasted text. The result carries no source fields.

        Raises:
            InvalidInputError: Blank text.
            ExtractionError: The extractor failed or returned an unusable draft.
        """
        if text is None or not text.strip():
            raise InvalidInputError("Recipe text is required")

        logger.info(f"Importing recipe from {len(text)} chars of text")
        try:
            draft = await self.extractor.extract_text(text)
        except ImportPipelineError:
            raise
        except Exception as e:
            logger.error(f"Extractor {self.extractor.name} failed: {e}")
            raise ExtractionError("Failed to extract recipe") from e

        return self._finish(draft, None)

    def normalize(
        self, ingredients: Iterable[ParsedIngredient]
    ) -> tuple[list[NormalizedIngredient], ConversionSummary]:
        """Normalize ingredients to metric and summarize the conversions."""
        normalized = normalize_ingredients(ingredients, self.unit_table)
        summary = summarize_conversions(normalized)

        if summary.converted > 0:
            logger.info(f"Converted {summary.converted}/{summary.total} ingredients to metric")
        return normalized, summary

    def _finish(self, draft: RecipeDraft, source_url: str | None) -> ImportResult:
        ingredients, summary = self.normalize(draft.ingredients)
        recipe = assemble_recipe(draft, ingredients, source_url)
        return ImportResult(recipe=recipe, summary=summary)

    async def close(self) -> None:
        """Close the fetcher and extractor clients."""
        await self.fetcher.close()
        await self.extractor.close()
