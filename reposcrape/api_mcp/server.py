from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..config.settings import get_settings
from ..core.epoch import to_iso
from ..core.models import Project, RepositoryRecord
from ..core.scrape_service import ScrapeService


# NOTE: Logical handlers for the MCP tools. They stay framework-agnostic
# so main.py (FastMCP) is only glue.


_settings = get_settings()
_service = ScrapeService(_settings)


def _repo_to_dict(repo: RepositoryRecord) -> Dict[str, Any]:
    details = repo.details
    return {
        "uid": repo.uid,
        "name": repo.display_name,
        "url": repo.url,
        "owner": repo.owner,
        "last_update": to_iso(repo.last_update),
        "status": details.status if details is not None else None,
        "description": details.description if details is not None else None,
        "languages": list(details.languages or []) if details is not None else [],
    }


def _project_to_dict(project: Project) -> Dict[str, Any]:
    return {
        "name": project.name,
        "description": project.description,
        "main": _repo_to_dict(project.main) if project.main is not None else None,
        "subs": [_repo_to_dict(r) for r in project.ordered_subs()],
    }


def list_repos() -> List[Dict[str, Any]]:
    """Logical implementation for the ``list_repos`` MCP tool.

    Only standalone repositories are listed; repositories belonging to a
    project are reported through ``list_projects``.
    """

    view = _service.view()
    return [_repo_to_dict(r) for r in sorted(view.repos.values(), reverse=True)]


def list_projects() -> List[Dict[str, Any]]:
    """Logical implementation for the ``list_projects`` MCP tool."""

    view = _service.view()
    return [_project_to_dict(view.projects[name]) for name in sorted(view.projects)]


def get_project(name: str) -> Optional[Dict[str, Any]]:
    """Logical implementation for the ``get_project`` MCP tool; ``None`` if unknown."""

    project = _service.view().projects.get(name)
    return _project_to_dict(project) if project is not None else None
