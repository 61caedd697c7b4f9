import logging
from typing import Any, Dict, List, Optional

from app.core.config import DEFAULT_LIST_LIMIT
from app.modules.fetch_controller.services.cache import FetchCache
from app.modules.fetch_controller.services.hooks import category_path, games_by_category

logger = logging.getLogger(__name__)


class CategoryPaginator:
    """Incremental paging over a category listing.

    Each page re-requests the whole prefix (``limit = page * page_size``), so
    the accumulated list is always the server's first N results. Changing
    the category or the search query starts over at page 1.
    """

    def __init__(self, transport, cache: FetchCache, category: str, query: str = "",
                 page_size: int = DEFAULT_LIST_LIMIT) -> None:
        self._transport = transport
        self._cache = cache
        self.category = category
        self.query = query
        self.page_size = page_size
        self.page = 1
        self.games: List[Dict[str, Any]] = []
        self.error: Optional[str] = None
        self.is_loading = False
        self.is_loading_more = False
        self._last_count: Optional[int] = None
        self._generation = 0

    @property
    def requested(self) -> int:
        return self.page * self.page_size

    @property
    def can_load_more(self) -> bool:
        if self._last_count is None:
            return False
        return self._last_count >= self.requested and self._last_count % self.page_size == 0

    @property
    def has_query(self) -> bool:
        return bool(self.query.strip())

    async def load(self) -> List[Dict[str, Any]]:
        generation = self._generation
        resource = games_by_category(self._transport, self._cache, self.category, self.requested, self.query)
        self.is_loading = True
        try:
            await resource.load()
        finally:
            self.is_loading = False
        if generation != self._generation:
            # The query or category changed while this page was in flight.
            logger.debug("Dropping stale page %s", resource.key)
            return self.games
        self.error = resource.error
        if resource.data is not None and resource.error is None:
            self.games = resource.games
            self._last_count = len(resource.games)
        return self.games

    async def load_more(self) -> bool:
        if not self.can_load_more or self.is_loading_more:
            return False
        self.page += 1
        self.is_loading_more = True
        try:
            await self.load()
        finally:
            self.is_loading_more = False
        return True

    def set_query(self, query: str) -> None:
        if query != self.query:
            self.query = query
            self._restart()

    def set_category(self, category: str) -> None:
        if category != self.category:
            self.category = category
            self._restart()

    def reset(self) -> None:
        """Back to page 1; the next ``load`` bypasses the cached first page."""
        self._restart()
        self._cache.invalidate(self._path())

    def _restart(self) -> None:
        self._generation += 1
        self.page = 1
        self.games = []
        self._last_count = None
        self.error = None

    def _path(self) -> str:
        return category_path(self.category, self.requested, self.query)
