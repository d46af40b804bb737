"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock

import pytest

from mealplanner.ingest.extractors.base import RecipeExtractor, parse_draft
from mealplanner.ingest.schemas import RecipeDraft

# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (require external services)"
    )


# =============================================================================
# Recipe Fixtures
# =============================================================================


@pytest.fixture
def sample_draft_data():
    """Recipe as the extractor returns it, with US customary units."""
    return {
        "name": "Classic Pancakes",
        "description": "Fluffy weekend pancakes",
        "servings": 4,
        "prepTimeMinutes": 10,
        "cookTimeMinutes": 15,
        "cuisineType": "American",
        "imageUrl": "https://example.com/pancakes.jpg",
        "ingredients": [
            {"quantity": "1", "unit": "cup", "name": "flour"},
            {"quantity": "2", "unit": "tbsp", "name": "sugar"},
            {"quantity": "2", "unit": "", "name": "eggs"},
            {"quantity": "200", "unit": "ml", "name": "milk"},
            {"quantity": None, "unit": "pinch", "name": "salt", "notes": "to taste"},
        ],
        "instructions": [
            "Whisk the dry ingredients.",
            "Beat in the eggs and milk.",
            "Fry in a hot pan until golden.",
        ],
        "macros": {"calories": 250, "protein": 7, "carbs": 40, "fat": 6},
    }


@pytest.fixture
def sample_draft(sample_draft_data) -> RecipeDraft:
    """Parsed recipe draft."""
    return parse_draft(sample_draft_data)


@pytest.fixture
def sample_recipe_html():
    """Minimal recipe page with a JSON-LD block."""
    return """<html>
<head>
  <title>Classic Pancakes | Example Kitchen</title>
  <script type="application/ld+json">{"@type": "Recipe", "name": "Classic Pancakes"}</script>
  <style>body { color: red; }</style>
</head>
<body>
  <nav>Home | Recipes | About</nav>
  <h1>Classic Pancakes</h1>
  <ul><li>1 cup flour</li><li>2 eggs</li></ul>
  <footer>Copyright Example Kitchen</footer>
</body>
</html>"""


@pytest.fixture
def mock_extractor(sample_draft):
    """Extractor double returning the sample draft."""
    extractor = AsyncMock(spec=RecipeExtractor)
    extractor.name = "mock"
    extractor.extract.return_value = sample_draft
    extractor.extract_text.return_value = sample_draft
    return extractor
