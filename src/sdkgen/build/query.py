"""Query interface: keyed, re-executable units of work."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sdkgen.build.cache_key import CacheKey

if TYPE_CHECKING:
    from sdkgen.build.engine import QueryEngine

T = TypeVar("T")


class Query(ABC, Generic[T]):
    """Abstract base class for all queries.

    ``run`` must be referentially transparent with respect to the cache
    key: it may perform I/O, but must not depend on state the key does
    not capture.
    """

    # Opt into the engine's durable ResultCache.
    persistent: bool = False

    @abstractmethod
    def cache_key(self) -> CacheKey:
        """Identity of the work this query performs."""
        ...

    @abstractmethod
    async def run(self, engine: QueryEngine) -> T:
        """Compute the result. May execute further queries through ``engine``."""
        ...

    def serialize(self, result: T) -> Any:
        """JSON-compatible form of ``result`` for the durable cache."""
        raise NotImplementedError(f"{type(self).__name__} is not persistent")

    def deserialize(self, data: Any) -> T | None:
        """Rebuild a result from the durable cache. None marks a stale entry."""
        raise NotImplementedError(f"{type(self).__name__} is not persistent")
