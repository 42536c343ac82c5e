"""Repository scraper: README annotations, TTL cache and project grouping."""

from __future__ import annotations

from .core.aggregator import aggregate
from .core.cachable import Cachable, Cache
from .core.metadata import extract
from .core.models import AggregatedView, Project, RepoDetails, RepositoryRecord

__all__ = [
    "AggregatedView",
    "Cachable",
    "Cache",
    "Project",
    "RepoDetails",
    "RepositoryRecord",
    "aggregate",
    "extract",
]

__version__ = "0.1.0"
