from __future__ import annotations

import logging
from typing import Callable, Dict, Set

from ..config.settings import Settings, get_settings
from ..storage.blob_store import load_cache, save_cache
from .aggregator import aggregate
from .cachable import Cachable, Cache
from .colors import fetch_language_colors
from .github_client import GitHubClient
from .models import AggregatedView, RepositoryRecord
from .url_resolver import UrlResolver

logger = logging.getLogger(__name__)


class ScrapeService:
    """High-level entrypoint: keep the cache fresh and build the project view.

    The cache is an explicit value: every call loads it from disk, works on
    it in memory and saves it back when it changed.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: GitHubClient | None = None,
        resolver: UrlResolver | None = None,
        colors_fetcher: Callable[[], Dict[str, str]] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client  # 延迟初始化，只有真正 refresh 时才需要 token
        self._resolver = resolver or UrlResolver(timeout=self._settings.http_timeout)
        self._colors_fetcher = colors_fetcher

    # ------------------------------------------------------------------
    # Cache I/O
    # ------------------------------------------------------------------

    def load(self) -> Cache:
        return load_cache(
            self._settings.cache_path,
            repos_ttl_days=self._settings.repos_ttl_days,
            colors_ttl_days=self._settings.colors_ttl_days,
        )

    def save(self, cache: Cache) -> None:
        save_cache(cache, self._settings.cache_path)
        logger.info("Saved cache with %d repositories to %s", len(cache.repos.data), self._settings.cache_path)

    # ------------------------------------------------------------------
    # Public APIs
    # ------------------------------------------------------------------

    def refresh(self, force: bool = False) -> Cache:
        """Refetch when the cache is empty, outdated or ``force`` is set.

        Remote failures are logged and the cached data is kept; the cache
        is only written back when something new was merged in.
        """

        cache = self.load()
        if not (force or cache.is_empty() or cache.repos.is_outdated()):
            logger.info("Cache is fresh, skipping refresh")
            return cache

        changed = False

        try:
            cache.colors.update(self._fetch_colors())
            changed = True
        except RuntimeError as exc:
            logger.warning("Language colour refresh failed: %s", exc)

        try:
            fetched = self._fetch_repos(cache)
        except (RuntimeError, KeyError) as exc:
            logger.warning("Repository refresh failed, keeping cached data: %s", exc)
        else:
            cache.repos.update(fetched)
            changed = True

        if changed:
            self.save(cache)
        return cache

    def view(self, refresh: bool = False) -> AggregatedView:
        """Aggregate the cached repositories into standalone repos and projects."""

        cache = self.refresh() if refresh else self.load()
        # aggregate() drains its input, so hand it a copy.
        working: Cachable[Set[RepositoryRecord]] = Cachable(
            data=set(cache.repos.data),
            days_to_update=cache.repos.days_to_update,
            last_update=cache.repos.last_update,
        )
        return aggregate(working, resolver=self._resolver)

    def colors(self) -> Dict[str, str]:
        return dict(self.load().colors.data)

    def add_repo(self, url: str) -> RepositoryRecord:
        """Fetch one repository by URL and merge it into the cache.

        A repository that is already cached keeps its cached copy.
        """

        record = self._get_client().fetch_single(url)
        cache = self.load()
        cache.repos.update({record})
        self.save(cache)
        return record

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_client(self) -> GitHubClient:
        if self._client is None:
            self._client = GitHubClient.from_default_config(
                self._settings.source,
                timeout=self._settings.http_timeout,
                resolver=self._resolver,
            )
        return self._client

    def _fetch_repos(self, cache: Cache) -> Set[RepositoryRecord]:
        client = self._get_client()
        source = client.source
        if cache.is_empty():
            return client.fetch_latest(source.user, source.max_count)
        return client.fetch_after(source.user, source.max_count, cache.repos.last_update)

    def _fetch_colors(self) -> Dict[str, str]:
        if self._colors_fetcher is not None:
            return self._colors_fetcher()
        return fetch_language_colors(self._settings.colors_url, timeout=self._settings.http_timeout)
