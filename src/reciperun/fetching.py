"""HTTP page retrieval.

Network failures, timeouts and non-success statuses are returned as
:class:`FetchError` results so the orchestrator can move on to the next
strategy.
"""

import logging

import httpx

from .config import DEFAULT_USER_AGENT
from .exceptions import FetchError
from .result import Result, failure, success

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


class PageFetcher:
    """Fetches page HTML with a shared async HTTP client.

    The client is owned by the caller; the fetcher never closes it.

    Example:
        >>> async with httpx.AsyncClient() as client:
        ...     fetcher = PageFetcher(client, timeout=15.0)
        ...     result = await fetcher.fetch("https://example.com/recipe")
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout: float = 15.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.client = client
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent, **BROWSER_HEADERS}

    async def fetch(self, url: str) -> Result[str]:
        """Fetch the HTML of ``url``.

        Args:
            url: Absolute page URL

        Returns:
            Result with the response body, or a FetchError
        """
        try:
            response = await self.client.get(
                url, headers=self.headers, timeout=self.timeout, follow_redirects=True
            )
            response.raise_for_status()
        except httpx.TimeoutException:
            logger.warning(f"Timed out fetching {url} after {self.timeout}s")
            return failure(FetchError("Request timed out", url=url, timeout=self.timeout))
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(f"Fetching {url} returned HTTP {status}")
            return failure(
                FetchError(
                    f"Failed to fetch URL: {status} {e.response.reason_phrase}",
                    url=url,
                    status=status,
                )
            )
        except httpx.HTTPError as e:
            logger.warning(f"Network error fetching {url}: {e}")
            return failure(FetchError("Network error", url=url, error=str(e)))

        logger.debug(f"Fetched {url} ({len(response.text)} chars)")
        return success(response.text)
