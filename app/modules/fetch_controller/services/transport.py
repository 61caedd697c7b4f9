import logging
from functools import lru_cache
from typing import Any, Dict, Optional

import aiohttp

from app.core.config import CATALOG_API_URL
from app.modules.fetch_controller.services.errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"Accept": "application/json", "Cache-Control": "no-cache"}


class HttpTransport:
    """JSON GETs against the catalog API over a shared aiohttp session."""

    def __init__(self, base_url: str, session: Optional[aiohttp.ClientSession] = None,
                 headers: Optional[Dict[str, str]] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._session = session
        self._owns_session = session is None
        self._headers = headers or DEFAULT_HEADERS

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def get_json(self, path: str) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("GET %s", url)
        try:
            async with self._get_session().get(url, headers=self._headers) as response:
                if response.status >= 400:
                    raise FetchError(await _error_message(response), status=response.status)
                return await response.json(content_type=None)
        except aiohttp.ClientError as exc:
            raise FetchError(f"Network error on {url}: {type(exc).__name__}") from exc
        except ValueError as exc:
            raise FetchError(f"Invalid JSON from {url}") from exc

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


async def _error_message(response: aiohttp.ClientResponse) -> str:
    """Prefer the envelope's ``error`` over the bare status line."""
    try:
        body = await response.json(content_type=None)
    except (aiohttp.ClientError, ValueError):
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return f"HTTP {response.status}: {response.reason}"


@lru_cache(maxsize=1)
def get_default_transport() -> HttpTransport:
    """Process-wide transport against ``CATALOG_API_URL``."""
    return HttpTransport(CATALOG_API_URL)
