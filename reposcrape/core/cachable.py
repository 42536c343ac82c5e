from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Generic, Optional, Set, TypeVar

from .epoch import now_millis
from .models import RepositoryRecord

T = TypeVar("T")

# x100 on a millisecond epoch. Existing cache files were written against it.
MILLIS_PER_DAY_FACTOR = 24 * 60 * 60 * 100

DEFAULT_REPOS_TTL_DAYS = 14
DEFAULT_COLORS_TTL_DAYS = 60


@dataclass
class Cachable(Generic[T]):
    """Cached payload plus the bookkeeping needed to decide when to refetch.

    ``data`` is either a set of ``RepositoryRecord`` or a ``str -> str``
    map. ``last_update`` is an epoch in milliseconds.
    """

    data: T
    days_to_update: int = 0
    last_update: int = 0

    def threshold(self) -> int:
        return self.days_to_update * MILLIS_PER_DAY_FACTOR

    def is_outdated(self, now: Optional[int] = None) -> bool:
        local = now_millis() if now is None else now
        return self.last_update < local and local - self.last_update > self.threshold()

    def update(self, other: T) -> None:
        """Merge freshly fetched data in; entries already cached win on collision.

        Only set payloads refresh ``last_update``; map payloads (language
        colours) keep their timestamp.
        """

        if isinstance(self.data, dict):
            merged_map = dict(other)  # type: ignore[call-overload]
            merged_map.update(self.data)
            self.data = merged_map  # type: ignore[assignment]
            return

        # set.update() never replaces an element that compares equal, so
        # the cached record survives an identity (uid) collision.
        merged = set(self.data)  # type: ignore[call-overload]
        merged.update(other)  # type: ignore[arg-type]
        self.data = merged  # type: ignore[assignment]
        self.last_update = now_millis()

    def is_empty(self) -> bool:
        return len(self.data) == 0  # type: ignore[arg-type]


def _empty_repos() -> Cachable[Set[RepositoryRecord]]:
    return Cachable(data=set(), days_to_update=DEFAULT_REPOS_TTL_DAYS)


def _empty_colors() -> Cachable[Dict[str, str]]:
    return Cachable(data={}, days_to_update=DEFAULT_COLORS_TTL_DAYS)


@dataclass
class Cache:
    """Everything persisted between runs: repositories and language colours."""

    repos: Cachable[Set[RepositoryRecord]] = field(default_factory=_empty_repos)
    colors: Cachable[Dict[str, str]] = field(default_factory=_empty_colors)

    @classmethod
    def default(
        cls,
        repos_ttl_days: int = DEFAULT_REPOS_TTL_DAYS,
        colors_ttl_days: int = DEFAULT_COLORS_TTL_DAYS,
    ) -> "Cache":
        return cls(
            repos=Cachable(data=set(), days_to_update=repos_ttl_days),
            colors=Cachable(data={}, days_to_update=colors_ttl_days),
        )

    def is_empty(self) -> bool:
        return self.repos.is_empty()
