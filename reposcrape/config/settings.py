from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os


@dataclass
class Settings:
    """Application settings with simple env overrides.

    The TTLs only apply to a freshly created cache; a loaded cache keeps
    the values it was saved with and must be deleted to pick up new ones.
    """

    cache_path: Path = Path(os.getenv("REPOSCRAPE_CACHE_PATH", "./data/reposcrape.cache")).resolve()
    repos_ttl_days: int = int(os.getenv("REPOSCRAPE_REPOS_TTL_DAYS", "14"))
    colors_ttl_days: int = int(os.getenv("REPOSCRAPE_COLORS_TTL_DAYS", "60"))
    http_timeout: int = int(os.getenv("REPOSCRAPE_HTTP_TIMEOUT", "30"))
    colors_url: str = os.getenv(
        "REPOSCRAPE_COLORS_URL",
        "https://github.com/github-linguist/linguist/raw/master/lib/linguist/languages.yml",
    )
    # Source name from sources.json; empty means the file's default_source.
    source: str = os.getenv("REPOSCRAPE_SOURCE", "")


def get_settings() -> Settings:
    """Return a Settings instance.

    Separated into a function so it can be wired into dependency
    injection frameworks if needed.
    """

    return Settings()
