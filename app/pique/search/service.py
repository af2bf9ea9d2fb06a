"""Cached, cancellable search.

Wraps an injected async search function (e.g. a video catalogue lookup)
with a result cache and last-request-wins cancellation: when a newer search
is issued before an older one resolves, the older result is cached but
never becomes the current result.
"""

from typing import Any, Awaitable, Callable, List, Optional

from infrastructure.caching import CacheKeyBuilder, InMemoryResultCache, ResultCache
from infrastructure.logging import get_module_logger
from infrastructure.resilience.cancellation import CancellationScope
from infrastructure.resilience.retry import RetryScheduler

logger = get_module_logger()

SearchFunction = Callable[..., Awaitable[List[Any]]]

SEARCH_KEY = "search"


class SearchService:
    """Search with caching and stale-response suppression.

    Attributes:
        results: Results of the most recent search that was not superseded
        current_query: Query those results belong to
    """

    def __init__(
        self,
        search_fn: SearchFunction,
        cache: ResultCache | None = None,
        scheduler: RetryScheduler | None = None,
        scope: CancellationScope | None = None,
    ) -> None:
        self._search_fn = search_fn
        self.cache = cache or InMemoryResultCache()
        self._scheduler = scheduler or RetryScheduler()
        self._scope = scope or CancellationScope()
        self._keys = CacheKeyBuilder(namespace=SEARCH_KEY)
        self.results: List[Any] = []
        self.current_query: Optional[str] = None

    def cache_key(self, query: str, **options: Any) -> str:
        return self._keys.build("query", query=query.strip().lower(), **options)

    async def search(self, query: str, **options: Any) -> Optional[List[Any]]:
        """Run a search, serving it from the cache when possible.

        Args:
            query: Search text; a blank query clears the results
            **options: Extra arguments forwarded to the search function and
                included in the cache key

        Returns:
            The results, or None if a newer search superseded this one

        Raises:
            OperationFailedError: If the search failed terminally
        """
        token = self._scope.issue(SEARCH_KEY)
        if not query or not query.strip():
            self.clear()
            return []

        key = self.cache_key(query, **options)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("search_cache_hit", query=query)
            self._apply(query, cached)
            return cached

        results = await self._scheduler.run(
            lambda: self._search_fn(query, **options), key=f"{SEARCH_KEY}:{key}"
        )
        results = list(results or [])
        self.cache.set(key, results)

        if token.cancelled:
            logger.debug("search_result_superseded", query=query)
            return None

        self._apply(query, results)
        logger.info("search_completed", query=query, results=len(results))
        return results

    def _apply(self, query: str, results: List[Any]) -> None:
        self.current_query = query
        self.results = list(results)

    def clear(self) -> None:
        self.current_query = None
        self.results = []

    def cancel(self) -> None:
        self._scope.cancel(SEARCH_KEY)
