"""Base extractor interface for turning page content into recipe drafts."""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import ValidationError

from mealplanner.ingest.errors import ExtractionError
from mealplanner.ingest.schemas import RecipeDraft
from mealplanner.logging_config import get_logger

logger = get_logger(__name__)


def parse_draft(data: Any) -> RecipeDraft:
    """
    Validate loosely structured extractor output into a RecipeDraft.

    Raises:
        ExtractionError: If required fields are missing or malformed.
    """
    try:
        return RecipeDraft.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Extractor returned an invalid recipe draft: {e.error_count()} errors")
        raise ExtractionError("Extracted recipe is missing required fields") from e


class RecipeExtractor(ABC):
    """Abstract base class for recipe extractors."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return extractor name for logging and identification."""
        pass

    @abstractmethod
    async def extract(self, source_url: str, html: str) -> RecipeDraft:
        """
        Extract a recipe from a fetched web page.

        Args:
            source_url: The URL the page was fetched from.
            html: Raw page body.

        Returns:
            Validated recipe draft.

        Raises:
            ExtractionError: On any failure.
        """
        pass

    @abstractmethod
    async def extract_text(self, text: str) -> RecipeDraft:
        """
        Extract a recipe from pasted recipe text.

        Raises:
            ExtractionError: On any failure.
        """
        pass

    async def close(self) -> None:
        """Release any client resources."""
        return None
