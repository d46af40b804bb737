"""Extractors that turn recipe pages and text into structured drafts."""

from mealplanner.ingest.extractors.base import RecipeExtractor, parse_draft
from mealplanner.ingest.extractors.claude import ClaudeRecipeExtractor

__all__ = [
    "ClaudeRecipeExtractor",
    "RecipeExtractor",
    "parse_draft",
]
