"""Recipe extractor backed by the Anthropic Messages API."""

import json
import re
from typing import Any

import anthropic
from bs4 import BeautifulSoup

from mealplanner.config import get_settings
from mealplanner.ingest.errors import ExtractionError
from mealplanner.ingest.extractors.base import RecipeExtractor, parse_draft
from mealplanner.ingest.schemas import RecipeDraft
from mealplanner.logging_config import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = """You extract recipes from web pages and recipe text.

Reply with a single JSON object and nothing else, using exactly these keys:
{
  "name": string,
  "description": string or null,
  "servings": integer or null,
  "prepTimeMinutes": integer or null,
  "cookTimeMinutes": integer or null,
  "cuisineType": string or null,
  "imageUrl": string or null,
  "ingredients": [
    {"quantity": string or null, "unit": string, "name": string, "notes": string or null}
  ],
  "instructions": [string],
  "macros": {
    "calories": number or null, "protein": number or null, "carbs": number or null,
    "fat": number or null, "fiber": number or null, "sugar": number or null,
    "sodium": number or null
  }
}

Rules:
- Copy quantities and units as written in the source; do not convert units.
- Use "" for unit when there is none (e.g. "2 eggs") and null quantity for
  amounts like "to taste".
- Macros are per serving; use null for anything the source does not state.
- Instructions are the method steps in order, one string per step."""

# Tags that never carry recipe content
_NOISE_TAGS = ["script", "style", "noscript", "nav", "footer", "header", "svg", "iframe", "form"]

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)


def html_to_text(html: str, max_chars: int) -> str:
    """
    Reduce a page to the text worth sending to the model.

    JSON-LD blocks describing a Recipe are kept verbatim ahead of the
    visible page text, since they carry the most reliable structure.
    """
    soup = BeautifulSoup(html, "html.parser")

    structured = [
        tag.string
        for tag in soup.find_all("script", type="application/ld+json")
        if tag.string and "Recipe" in tag.string
    ]

    for tag in soup(_NOISE_TAGS):
        tag.decompose()

    title = soup.title.get_text(strip=True) if soup.title else ""
    body = soup.get_text("\n", strip=True)

    parts = []
    if title:
        parts.append(f"Title: {title}")
    if structured:
        parts.append("Structured data:\n" + "\n".join(structured))
    parts.append(body)

    return "\n\n".join(parts)[:max_chars]


def extract_json_object(reply: str) -> dict[str, Any]:
    """
    Parse the JSON object in a model reply.

    Raises:
        ValueError: If the reply holds no JSON object.
    """
    text = _FENCE_RE.sub("", reply.strip())
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise ValueError("no JSON object in reply")

    data = json.loads(text[start : end + 1])
    if not isinstance(data, dict):
        raise ValueError("reply JSON is not an object")
    return data


class ClaudeRecipeExtractor(RecipeExtractor):
    """Extracts recipes with a Claude model."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        max_input_chars: int | None = None,
        client: anthropic.AsyncAnthropic | None = None,
    ):
        settings = get_settings()
        self.api_key = api_key or settings.anthropic_api_key
        self.model = model or settings.extractor_model
        self.max_tokens = max_tokens or settings.extractor_max_tokens
        self.max_input_chars = max_input_chars or settings.extractor_max_input_chars
        self._client = client

    @property
    def name(self) -> str:
        """Return extractor name."""
        return "claude"

    @property
    def client(self) -> anthropic.AsyncAnthropic | None:
        """Get or create the Anthropic client; None when no key is configured."""
        if self._client is None and self.api_key:
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def close(self) -> None:
        """Close the Anthropic client."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def _complete(self, user_message: str) -> str:
        """Send one message and return the text of the reply."""
        if not self.client:
            raise ExtractionError("Recipe extraction is not configured")

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": user_message}],
            )
        except anthropic.APIError as e:
            logger.error(f"Anthropic request failed: {e}")
            raise ExtractionError("Failed to extract recipe") from e

        return "".join(block.text for block in response.content if block.type == "text")

    def _parse_reply(self, reply: str) -> RecipeDraft:
        try:
            data = extract_json_object(reply)
        except ValueError as e:
            logger.warning(f"Unparseable extractor reply: {reply[:200]!r}")
            raise ExtractionError("Failed to extract recipe") from e
        return parse_draft(data)

    async def extract(self, source_url: str, html: str) -> RecipeDraft:
        """Extract a recipe from a fetched page."""
        page_text = html_to_text(html, self.max_input_chars)
        logger.info(f"Extracting recipe with {self.model} ({len(page_text)} chars of page text)")

        reply = await self._complete(f"Source URL: {source_url}\n\nPage content:\n{page_text}")
        draft = self._parse_reply(reply)

        logger.info(f"Extracted '{draft.name}' with {len(draft.ingredients)} ingredients")
        return draft

    async def extract_text(self, text: str) -> RecipeDraft:
        """Extract a recipe from pasted text."""
        logger.info(f"Extracting recipe from {len(text)} chars of text with {self.model}")

        reply = await self._complete(f"Recipe text:\n{text[: self.max_input_chars]}")
        draft = self._parse_reply(reply)

        logger.info(f"Extracted '{draft.name}' with {len(draft.ingredients)} ingredients")
        return draft
