"""Tests for the recipe import pipeline."""

import httpx
import pytest

from mealplanner.ingest import (
    ExtractionError,
    InvalidInputError,
    PageFetcher,
    RecipeImportPipeline,
    UpstreamFetchError,
)
from mealplanner.ingest.assembler import assemble_recipe
from mealplanner.normalize import normalize_ingredients
from mealplanner.schemas import ParsedIngredient


def make_pipeline(extractor, status: int = 200, requests: list | None = None):
    """Build a pipeline whose fetcher answers every request with a fixed status."""

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return httpx.Response(status, text="<html><h1>Pancakes</h1></html>")

    fetcher = PageFetcher(transport=httpx.MockTransport(handler))
    return RecipeImportPipeline(fetcher, extractor)


class TestAssembleRecipe:
    """Tests for the recipe assembler."""

    def test_adds_source_fields(self, sample_draft):
        """Test that URL imports carry the URL and its lower-cased host."""
        ingredients = normalize_ingredients(sample_draft.ingredients)

        recipe = assemble_recipe(sample_draft, ingredients, "https://WWW.Example.com/Pancakes")

        assert recipe.source_url == "https://WWW.Example.com/Pancakes"
        assert recipe.recipe_source == "www.example.com"
        assert recipe.name == sample_draft.name
        assert recipe.instructions == sample_draft.instructions
        assert recipe.ingredients[0].unit == "ml"

    def test_internationalised_host_is_punycode(self, sample_draft):
        """Test that an IDN hostname is reported in its ASCII form."""
        recipe = assemble_recipe(
            sample_draft,
            normalize_ingredients(sample_draft.ingredients),
            "https://bücher.example/rezept",
        )

        assert recipe.source_url == "https://bücher.example/rezept"
        assert recipe.recipe_source == "xn--bcher-kva.example"

    def test_text_import_has_no_source(self, sample_draft):
        """Test that text imports carry no source fields."""
        recipe = assemble_recipe(sample_draft, normalize_ingredients(sample_draft.ingredients))

        assert recipe.source_url is None
        assert recipe.recipe_source is None

    def test_wire_format(self, sample_draft):
        """Test camelCase serialization of the assembled recipe."""
        recipe = assemble_recipe(
            sample_draft,
            normalize_ingredients(sample_draft.ingredients),
            "https://example.com/pancakes",
        )

        data = recipe.model_dump(by_alias=True)

        assert data["sourceUrl"] == "https://example.com/pancakes"
        assert data["recipeSource"] == "example.com"
        assert data["prepTimeMinutes"] == 10
        assert data["ingredients"][0]["originalUnit"] == "cup"


class TestImportFromUrl:
    """Tests for URL imports."""

    @pytest.mark.asyncio
    async def test_import_success(self, mock_extractor):
        """Test a full import: fetch, extract, normalize, assemble."""
        pipeline = make_pipeline(mock_extractor)

        result = await pipeline.import_from_url("https://Example.com/pancakes")

        mock_extractor.extract.assert_awaited_once_with(
            "https://Example.com/pancakes", "<html><h1>Pancakes</h1></html>"
        )
        assert result.recipe.source_url == "https://Example.com/pancakes"
        assert result.recipe.recipe_source == "example.com"

        flour = result.recipe.ingredients[0]
        assert flour.quantity == "240"
        assert flour.unit == "ml"
        assert flour.converted is True

        assert result.summary.total == 5
        assert result.summary.converted == 2
        assert result.summary.unchanged == 3

    @pytest.mark.asyncio
    async def test_source_url_kept_as_given(self, mock_extractor):
        """Test that sourceUrl echoes the input while the page is fetched without padding."""
        requests: list[httpx.Request] = []
        pipeline = make_pipeline(mock_extractor, requests=requests)

        result = await pipeline.import_from_url("  https://example.com/pancakes ")

        assert result.recipe.source_url == "  https://example.com/pancakes "
        assert result.recipe.recipe_source == "example.com"
        assert requests[0].url == "https://example.com/pancakes"

    @pytest.mark.asyncio
    async def test_invalid_url_no_network(self, mock_extractor):
        """Test that an invalid URL fails before fetching or extracting."""
        requests: list[httpx.Request] = []
        pipeline = make_pipeline(mock_extractor, requests=requests)

        with pytest.raises(InvalidInputError) as exc_info:
            await pipeline.import_from_url("not-a-url")

        assert exc_info.value.status_code == 400
        assert requests == []
        mock_extractor.extract.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_url(self, mock_extractor):
        """Test that a missing URL is rejected."""
        pipeline = make_pipeline(mock_extractor)

        with pytest.raises(InvalidInputError) as exc_info:
            await pipeline.import_from_url(None)

        assert exc_info.value.message == "URL is required"

    @pytest.mark.asyncio
    async def test_upstream_404_skips_extraction(self, mock_extractor):
        """Test that a 404 page raises UpstreamFetchError without extraction."""
        requests: list[httpx.Request] = []
        pipeline = make_pipeline(mock_extractor, status=404, requests=requests)

        with pytest.raises(UpstreamFetchError) as exc_info:
            await pipeline.import_from_url("https://example.com/missing")

        assert exc_info.value.status_code == 400
        assert len(requests) == 1
        mock_extractor.extract.assert_not_called()

    @pytest.mark.asyncio
    async def test_extraction_error_propagates(self, mock_extractor):
        """Test that extractor errors reach the caller unchanged."""
        mock_extractor.extract.side_effect = ExtractionError("Failed to extract recipe")
        pipeline = make_pipeline(mock_extractor)

        with pytest.raises(ExtractionError) as exc_info:
            await pipeline.import_from_url("https://example.com/pancakes")

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_unexpected_extractor_failure_wrapped(self, mock_extractor):
        """Test that other extractor failures become ExtractionError."""
        mock_extractor.extract.side_effect = RuntimeError("boom")
        pipeline = make_pipeline(mock_extractor)

        with pytest.raises(ExtractionError) as exc_info:
            await pipeline.import_from_url("https://example.com/pancakes")

        assert exc_info.value.message == "Failed to extract recipe"
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestImportFromText:
    """Tests for text imports."""

    @pytest.mark.asyncio
    async def test_import_text(self, mock_extractor):
        """Test importing pasted text."""
        pipeline = make_pipeline(mock_extractor)

        result = await pipeline.import_from_text("Pancakes\n1 cup flour")

        mock_extractor.extract_text.assert_awaited_once_with("Pancakes\n1 cup flour")
        assert result.recipe.source_url is None
        assert result.recipe.recipe_source is None
        assert result.summary.converted == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", [None, "", "  \n "])
    async def test_blank_text(self, mock_extractor, text):
        """Test that blank text is rejected."""
        pipeline = make_pipeline(mock_extractor)

        with pytest.raises(InvalidInputError) as exc_info:
            await pipeline.import_from_text(text)

        assert exc_info.value.message == "Recipe text is required"
        mock_extractor.extract_text.assert_not_called()


class TestNormalize:
    """Tests for the normalize step on its own."""

    def test_normalize(self, mock_extractor):
        """Test normalizing a list of ingredients."""
        pipeline = make_pipeline(mock_extractor)

        ingredients, summary = pipeline.normalize(
            [
                ParsedIngredient(name="butter", quantity="2-3", unit="lb"),
                ParsedIngredient(name="garlic", quantity="3", unit="cloves"),
            ]
        )

        assert ingredients[0].quantity == "0.91-1.36"
        assert ingredients[0].unit == "kg"
        assert ingredients[1].quantity == "3"
        assert ingredients[1].unit == "cloves"
        assert summary.converted == 1
        assert summary.unchanged == 1

    @pytest.mark.asyncio
    async def test_close(self, mock_extractor):
        """Test that close releases fetcher and extractor clients."""
        pipeline = make_pipeline(mock_extractor)

        await pipeline.close()

        mock_extractor.close.assert_awaited_once()
