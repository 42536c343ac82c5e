from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Set


@dataclass
class RepoDetails:
    """Typed metadata recovered from a repository's README annotations.

    Every field is optional; ``None`` means "not annotated", which is
    different from an empty string or an empty list.
    """

    project: Optional[str] = None
    main: Optional[str] = None
    title: Optional[str] = None
    font: Optional[List[str]] = None
    color: Optional[List[int]] = None
    keywords: Optional[List[str]] = None
    languages: Optional[List[str]] = None
    technology: Optional[List[str]] = None
    children: Optional[str] = None
    status: Optional[str] = None
    description: Optional[str] = None


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class RepositoryRecord:
    """A single repository as seen by a remote source.

    Identity is ``uid`` alone: two records with the same uid are equal and
    hash the same, so a set keeps only one of them. Ordering is by
    ``(last_update, uid)``; records sharing a uid are ordered by
    ``last_sync`` instead.
    """

    uid: str
    id: str
    url: str
    name: str
    owner: str
    origin: str
    last_sync: int
    last_update: int
    details: Optional[RepoDetails] = None

    @classmethod
    def create(
        cls,
        id: str,
        url: str,
        name: str,
        owner: str,
        origin: str,
        last_sync: int,
        last_update: int,
        metadata: Mapping[str, str],
    ) -> "RepositoryRecord":
        """Build a record, coercing raw README metadata into ``RepoDetails``."""

        # Delayed import: coercion depends on RepoDetails defined above.
        from .coercion import build_details

        return cls(
            uid=f"{origin}/{id}",
            id=id,
            url=url,
            name=name,
            owner=owner,
            origin=origin,
            last_sync=last_sync,
            last_update=last_update,
            details=build_details(metadata, source=f"{origin}/{id}"),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RepositoryRecord):
            return NotImplemented
        return self.uid == other.uid

    def __hash__(self) -> int:
        return hash(self.uid)

    def __lt__(self, other: "RepositoryRecord") -> bool:
        if not isinstance(other, RepositoryRecord):
            return NotImplemented
        if self.uid == other.uid:
            return self.last_sync < other.last_sync
        return (self.last_update, self.uid) < (other.last_update, other.uid)

    def __gt__(self, other: "RepositoryRecord") -> bool:
        # Mirrors __lt__, including the same-uid case.
        if not isinstance(other, RepositoryRecord):
            return NotImplemented
        return other.__lt__(self)

    @property
    def display_name(self) -> str:
        """Title from the README annotations, falling back to the repo name."""

        if self.details is not None and self.details.title is not None:
            return self.details.title
        return self.name


@dataclass
class Project:
    """A named group of repositories sharing a ``project`` annotation."""

    name: str
    description: Optional[str] = None
    main: Optional[RepositoryRecord] = None
    subs: Set[RepositoryRecord] = field(default_factory=set)

    def size(self) -> int:
        return (1 if self.main is not None else 0) + len(self.subs)

    def is_single(self) -> bool:
        return self.size() == 1

    def get_single(self) -> Optional[RepositoryRecord]:
        """Return the only member of a single-member project, else ``None``."""

        if not self.is_single():
            return None
        if self.main is not None:
            return self.main
        return next(iter(self.subs))

    def ordered_subs(self) -> List[RepositoryRecord]:
        """Sub repositories, most recently updated first."""

        return sorted(self.subs, reverse=True)

    def members(self) -> Iterator[RepositoryRecord]:
        if self.main is not None:
            yield self.main
        yield from self.ordered_subs()


@dataclass
class AggregatedView:
    """Standalone repositories plus multi-repository projects.

    Every aggregated record lives in exactly one place: ``repos`` (keyed by
    uid) or inside one ``Project`` as its main or one of its subs.
    """

    repos: Dict[str, RepositoryRecord] = field(default_factory=dict)
    projects: Dict[str, Project] = field(default_factory=dict)

    def records(self) -> Iterator[RepositoryRecord]:
        yield from self.repos.values()
        for project in self.projects.values():
            yield from project.members()

    def is_empty(self) -> bool:
        return not self.repos and not self.projects
