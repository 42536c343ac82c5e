from pathlib import Path
from typing import Dict, List, Optional
import sys

import pytest

# Ensure repo root is importable when the package is not installed.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from reposcrape.config.settings import Settings  # noqa: E402
from reposcrape.config.sources import SourceConfig  # noqa: E402
from reposcrape.core.cachable import Cachable, Cache  # noqa: E402
from reposcrape.core.epoch import now_millis  # noqa: E402
from reposcrape.core.models import RepoDetails, RepositoryRecord  # noqa: E402
from reposcrape.core.scrape_service import ScrapeService  # noqa: E402
from reposcrape.storage.blob_store import save_cache  # noqa: E402


class FakeResolver:
    """UrlResolver stand-in: looks URLs up in a table, records every call."""

    def __init__(self, table: Optional[Dict[str, str]] = None) -> None:
        self.table = dict(table or {})
        self.calls: List[str] = []

    def resolve(self, url: str) -> Optional[str]:
        self.calls.append(url)
        return self.table.get(url)


class FakeClient:
    """GitHubClient stand-in returning canned records."""

    def __init__(self, latest=(), after=(), single=None, error=None) -> None:
        self.source = SourceConfig(
            name="github",
            type="github-graphql",
            base_url="https://api.example.invalid/graphql",
            token_env="UNUSED",
            user="user",
            max_count=3,
        )
        self.latest = set(latest)
        self.after = set(after)
        self.single = single
        self.error = error
        self.calls: List[tuple] = []

    def fetch_latest(self, user, max_count):
        self.calls.append(("latest", user, max_count))
        if self.error:
            raise self.error
        return set(self.latest)

    def fetch_after(self, user, max_count, after_epoch):
        self.calls.append(("after", user, max_count, after_epoch))
        if self.error:
            raise self.error
        return set(self.after)

    def fetch_single(self, url):
        self.calls.append(("single", url))
        if self.single is None:
            raise RuntimeError(f"Repository {url} not found")
        return self.single


def make_record(
    id: str,
    last_update: int = 0,
    last_sync: int = 0,
    name: Optional[str] = None,
    url: str = "",
    origin: str = "github",
    details: Optional[RepoDetails] = None,
) -> RepositoryRecord:
    return RepositoryRecord(
        uid=f"{origin}/{id}",
        id=id,
        url=url,
        name=name if name is not None else id.split("/")[-1],
        owner=id.split("/")[0],
        origin=origin,
        last_sync=last_sync,
        last_update=last_update,
        details=details,
    )


@pytest.fixture
def fake_resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        cache_path=tmp_path / "data" / "reposcrape.cache",
        repos_ttl_days=14,
        colors_ttl_days=60,
        http_timeout=1,
        colors_url="http://example.invalid/languages.yml",
        source="",
    )


@pytest.fixture
def seeded_service(settings: Settings) -> ScrapeService:
    """A ScrapeService whose cache file already holds a small project tree."""

    records = {
        make_record(
            "user/core",
            last_update=3_000,
            url="https://github.com/user/core",
            details=RepoDetails(project="Tool", main="", title="Tool Core", description="The tool"),
        ),
        make_record(
            "user/plugin",
            last_update=2_000,
            url="https://github.com/user/plugin",
            details=RepoDetails(project="Tool", status="Done", languages=["Python"]),
        ),
        make_record("user/solo", last_update=1_000, url="https://github.com/user/solo"),
    }
    cache = Cache.default(settings.repos_ttl_days, settings.colors_ttl_days)
    cache.repos = Cachable(data=records, days_to_update=settings.repos_ttl_days, last_update=now_millis())
    cache.colors.data = {"Python": "#3572A5"}
    save_cache(cache, settings.cache_path)

    return ScrapeService(
        settings=settings,
        client=FakeClient(single=make_record("user/extra", last_update=4_000)),
        resolver=FakeResolver(),
        colors_fetcher=dict,
    )
