"""Keyed query cache with per-query retry policy.

One QueryCache belongs to one context (a request, or a client instance); it is
never shared as module state.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional

from calgate.engine.errors import TransientFetchFailure

logger = logging.getLogger(__name__)


class QueryStatus(str, Enum):
    """Lifecycle of a cached query."""
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class QueryState:
    """Snapshot of a query."""
    status: QueryStatus = QueryStatus.IDLE
    data: Any = None
    error: Optional[BaseException] = None
    failure_count: int = 0


@dataclass
class _Query:
    fetcher: Callable[[], Any]
    retry: int
    state: QueryState


class QueryCache:
    """Cache of named queries.

    Each query is registered with a fetcher and the number of additional
    attempts to make after a failure. Failed fetches are not cached as data;
    the error state is kept until the query is fetched or invalidated again.
    """

    def __init__(self):
        self._queries: Dict[str, _Query] = {}

    def register(self, key: str, fetcher: Callable[[], Any], retry: int = 0) -> None:
        self._queries[key] = _Query(fetcher=fetcher, retry=retry, state=QueryState())

    def state(self, key: str) -> QueryState:
        return self._query(key).state

    def _query(self, key: str) -> _Query:
        try:
            return self._queries[key]
        except KeyError:
            raise KeyError(f"Query {key!r} is not registered") from None

    def fetch(self, key: str) -> Any:
        """Return cached data, fetching (with retries) when there is none.

        Raises:
            TransientFetchFailure: All attempts failed
        """
        query = self._query(key)
        if query.state.status == QueryStatus.SUCCESS:
            return query.state.data

        query.state = QueryState(status=QueryStatus.LOADING)
        attempts = 0
        while True:
            attempts += 1
            try:
                data = query.fetcher()
            except Exception as e:
                if attempts <= query.retry:
                    logger.warning(f"Query {key} failed (attempt {attempts}), retrying: {type(e).__name__}: {str(e)}")
                    continue
                logger.error(f"Query {key} failed after {attempts} attempt(s): {type(e).__name__}: {str(e)}")
                query.state = QueryState(status=QueryStatus.ERROR, error=e, failure_count=attempts)
                raise TransientFetchFailure(key, attempts, e) from e
            query.state = QueryState(status=QueryStatus.SUCCESS, data=data, failure_count=attempts - 1)
            return data

    def invalidate(self, key: str) -> None:
        """Drop cached data so the next fetch goes to the source."""
        query = self._query(key)
        query.state = QueryState()
        logger.debug(f"Invalidated query {key}")

    def dispatch(self, commands: Iterable[Any]) -> None:
        """Apply refresh commands returned by mutations.

        Invalidation happens before this returns; the next fetch of each key
        reflects the mutation.
        """
        for command in commands:
            key = command.query_key
            if key in self._queries:
                self.invalidate(key)
