from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set

from .cachable import Cachable
from .metadata import extract_urls
from .models import AggregatedView, Project, RepositoryRecord
from .url_resolver import UrlResolver

logger = logging.getLogger(__name__)


def aggregate(
    cache: Cachable[Set[RepositoryRecord]],
    resolver: Optional[UrlResolver] = None,
) -> AggregatedView:
    """Partition cached repositories into standalone repos and projects.

    The cache payload is drained: once this returns ``cache.data`` is empty
    and every record lives in the returned view, either in ``repos`` or in
    exactly one project.

    Records are processed from the most recently updated down, so the
    outcome depends only on the set contents, never on fetch order.
    """

    view = AggregatedView()
    if not cache.data:
        return view

    for record in _drain_descending(cache.data):
        _distribute(view, record)

    _reconcile_children(view.projects, resolver or UrlResolver())
    _collapse_single_projects(view)

    return view


def _drain_descending(records: Set[RepositoryRecord]) -> List[RepositoryRecord]:
    ordered = sorted(records, reverse=True)
    records.clear()
    return ordered


def _distribute(view: AggregatedView, record: RepositoryRecord) -> None:
    details = record.details
    if details is None or details.project is None:
        view.repos[record.uid] = record
        return

    project_name = details.project
    repo_name = details.title if details.title is not None else record.name
    is_main = details.main is not None or project_name == repo_name

    project = view.projects.get(project_name)
    if project is None:
        project = Project(name=project_name)
        view.projects[project_name] = project

    if is_main and project.main is not None:
        existing = project.main
        logger.warning(
            "Project %r has more than one main repository: %s, %s",
            project_name,
            existing.uid,
            record.uid,
        )
        existing_explicit = existing.details is not None and existing.details.main is not None
        if existing_explicit:
            # First explicit marker keeps priority.
            is_main = False
        else:
            project.subs.add(existing)
            project.main = None

    if is_main:
        project.description = details.description
        project.main = record
    else:
        project.subs.add(record)


def _reconcile_children(projects: Dict[str, Project], resolver: UrlResolver) -> None:
    """Warn about child links declared by a main repo but missing from its subs.

    Each resolution is a blocking network call made in sequence; URLs that
    fail to resolve are left out of the comparison.
    """

    for project in projects.values():
        main = project.main
        if main is None or main.details is None or not main.details.children:
            continue

        child_urls = extract_urls(main.details.children.splitlines())
        if len(child_urls) == len(project.subs):
            continue

        resolved_subs = set()
        for sub in project.ordered_subs():
            resolved = resolver.resolve(sub.url)
            if resolved is not None:
                resolved_subs.add(resolved)

        for child_url in child_urls:
            resolved = resolver.resolve(child_url)
            if resolved is None or resolved in resolved_subs:
                continue
            # TODO: fetch the missing repository via GitHubClient.fetch_single and attach it
            logger.warning(
                "Project %r lists %s as a child but no sub repository matches it",
                project.name,
                child_url,
            )


def _collapse_single_projects(view: AggregatedView) -> None:
    """Move the sole member of every one-repository project into ``repos``."""

    for name in [name for name, project in view.projects.items() if project.is_single()]:
        project = view.projects.pop(name)
        record = project.get_single()
        if record is not None:
            view.repos[record.uid] = record
