from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional


@dataclass
class SourceConfig:
    """Configuration for a single remote repository source."""

    name: str
    type: str  # e.g. "github-graphql"
    base_url: str
    token_env: str
    user: str
    max_count: int = 64

    @property
    def token(self) -> Optional[str]:
        """Read the API token from the configured environment variable."""

        return os.getenv(self.token_env)


@dataclass
class SourcesConfig:
    default_source: str
    sources: Dict[str, SourceConfig]

    def get_source(self, name: Optional[str] = None) -> SourceConfig:
        """Return the named source, or the default one when ``name`` is empty."""

        key = name or self.default_source
        try:
            return self.sources[key]
        except KeyError:
            raise KeyError(
                f"Unknown source {key!r}; configured: {', '.join(sorted(self.sources)) or 'none'}"
            ) from None


def _load_raw_config(path: Path) -> Dict:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_sources_config(
    root: Path | None = None, filename: str = "sources.json"
) -> SourcesConfig:
    """Load repository source configuration.

    - If ``reposcrape/config/sources.json`` exists it is used;
    - otherwise the bundled ``sources.example.json`` is the fallback.
    """

    if root is None:
        root = Path(__file__).parent

    config_path = root / filename
    if not config_path.exists():
        config_path = root / "sources.example.json"

    raw = _load_raw_config(config_path)
    default_source = raw.get("default_source", "github")
    sources_raw = raw.get("sources", {})

    sources: Dict[str, SourceConfig] = {}
    for name, s in sources_raw.items():
        sources[name] = SourceConfig(
            name=name,
            type=s.get("type", "github-graphql"),
            base_url=s.get("base_url", "https://api.github.com/graphql"),
            token_env=s.get("token_env", "GITHUB_TOKEN"),
            user=s.get("user", ""),
            max_count=int(s.get("max_count", 64)),
        )

    return SourcesConfig(default_source=default_source, sources=sources)
