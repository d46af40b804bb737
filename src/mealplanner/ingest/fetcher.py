"""Fetch recipe web pages."""

from typing import Any

import httpx

from mealplanner.config import get_settings
from mealplanner.ingest.errors import InvalidInputError, UpstreamFetchError
from mealplanner.logging_config import get_logger

logger = get_logger(__name__)


def validate_source_url(url: str | None) -> httpx.URL:
    """
    Check that a user-supplied URL can be fetched.

    Raises:
        InvalidInputError: If the URL is missing, unparseable, not http(s)
            or has no host.
    """
    if url is None or not url.strip():
        raise InvalidInputError("URL is required")

    try:
        parsed = httpx.URL(url.strip())
    except (httpx.InvalidURL, TypeError, ValueError) as e:
        raise InvalidInputError("Invalid URL format") from e

    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise InvalidInputError("Invalid URL format")

    return parsed


def source_hostname(url: str | httpx.URL) -> str:
    """Hostname of a URL, lower-cased. Internationalised names come back as punycode."""
    if not isinstance(url, httpx.URL):
        url = validate_source_url(url)
    return url.raw_host.decode("ascii").lower()


class PageFetcher:
    """Fetches a recipe page as text. One request per call, no retries."""

    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        timeout: float | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.timeout = timeout or settings.fetch_timeout or self.DEFAULT_TIMEOUT
        self.user_agent = user_agent or settings.fetch_user_agent
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        """Return fetcher name."""
        return "http"

    def _get_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-GB,en;q=0.9",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers=self._get_headers(),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str) -> str:
        """
        Retrieve the body of a recipe page.

        Args:
            url: Page URL as supplied by the user.

        Returns:
            The response body decoded as text.

        Raises:
            InvalidInputError: If the URL is not valid (no request is made).
            UpstreamFetchError: If the page answers with a non-2xx status.
        """
        parsed = validate_source_url(url)
        client = await self._get_client()

        logger.info(f"Fetching recipe page: {parsed}")
        response = await client.get(parsed)

        if not response.is_success:
            logger.warning(f"Recipe page returned {response.status_code}: {parsed}")
            raise UpstreamFetchError(
                "Failed to fetch recipe from URL",
                url=str(parsed),
                upstream_status=response.status_code,
            )

        logger.debug(f"Fetched {len(response.text)} characters from {parsed.host}")
        return response.text

    async def __aenter__(self) -> "PageFetcher":
        """Async context manager entry."""
        await self._get_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.close()
