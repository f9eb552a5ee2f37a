"""HTTP fetching with a fixed timeout, no retries, and logged failures."""

import httpx
import structlog

from knowledge_search.config import Settings, get_settings

logger = structlog.get_logger()

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


class HttpFetcher:
    """
    Thin wrapper around ``httpx.AsyncClient``.

    Every failure (timeout, connection error, non-2xx status) is logged and
    turned into ``None`` so callers can simply skip the URL.
    """

    def __init__(
        self,
        timeout: float | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.timeout = timeout or settings.request_timeout_seconds
        self.user_agent = user_agent or settings.user_agent
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HttpFetcher":
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            max_redirects=5,
            headers={"User-Agent": self.user_agent, **DEFAULT_HEADERS},
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_text(self, url: str, headers: dict | None = None) -> str | None:
        """
        GET a URL and return its decoded body.

        Outside ``async with`` the client is opened on first use and stays
        open until the caller awaits ``close()``.

        Returns:
            The response text, or None if the request failed for any reason
        """
        if self._client is None:
            await self.__aenter__()

        try:
            response = await self._client.get(url, headers=headers)
            response.raise_for_status()
        except httpx.TimeoutException:
            logger.warning("fetch_timeout", url=url, timeout=self.timeout)
            return None
        except httpx.HTTPStatusError as e:
            logger.warning("fetch_http_error", url=url, status=e.response.status_code)
            return None
        except httpx.HTTPError as e:
            logger.warning("fetch_failed", url=url, error=str(e))
            return None
        except httpx.InvalidURL as e:
            logger.warning("fetch_invalid_url", url=url, error=str(e))
            return None

        return response.text
