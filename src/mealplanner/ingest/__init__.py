"""Recipe import from web pages and pasted text."""

from mealplanner.ingest.errors import (
    ExtractionError,
    ImportPipelineError,
    InvalidInputError,
    UnexpectedImportError,
    UpstreamFetchError,
)
from mealplanner.ingest.fetcher import PageFetcher
from mealplanner.ingest.pipeline import ImportResult, RecipeImportPipeline

__all__ = [
    "ExtractionError",
    "ImportPipelineError",
    "ImportResult",
    "InvalidInputError",
    "PageFetcher",
    "RecipeImportPipeline",
    "UnexpectedImportError",
    "UpstreamFetchError",
]
