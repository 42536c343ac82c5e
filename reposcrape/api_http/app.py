from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ..config.settings import get_settings
from ..core.epoch import to_iso
from ..core.logging import setup_logging
from ..core.models import Project, RepoDetails, RepositoryRecord
from ..core.scrape_service import ScrapeService

logger = logging.getLogger(__name__)

setup_logging()

app = FastAPI(title="reposcrape API")

# The site generator's dev server reads from this API.
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Infrastructure wiring
# ---------------------------------------------------------------------------


_settings = get_settings()
_service = ScrapeService(_settings)


class RepoDetailsResponse(BaseModel):
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


class RepoResponse(BaseModel):
    uid: str
    id: str
    url: str
    name: str
    owner: str
    origin: str
    last_sync: str
    last_update: str
    details: Optional[RepoDetailsResponse] = None


class ProjectResponse(BaseModel):
    name: str
    description: Optional[str] = None
    main: Optional[RepoResponse] = None
    subs: List[RepoResponse]


class RefreshResponse(BaseModel):
    status: str
    force: bool


class RepoAddRequest(BaseModel):
    url: str


def _details_to_response(details: RepoDetails) -> RepoDetailsResponse:
    return RepoDetailsResponse(
        project=details.project,
        main=details.main,
        title=details.title,
        font=details.font,
        color=details.color,
        keywords=details.keywords,
        languages=details.languages,
        technology=details.technology,
        children=details.children,
        status=details.status,
        description=details.description,
    )


def _repo_to_response(repo: RepositoryRecord) -> RepoResponse:
    return RepoResponse(
        uid=repo.uid,
        id=repo.id,
        url=repo.url,
        name=repo.name,
        owner=repo.owner,
        origin=repo.origin,
        last_sync=to_iso(repo.last_sync),
        last_update=to_iso(repo.last_update),
        details=_details_to_response(repo.details) if repo.details is not None else None,
    )


def _project_to_response(project: Project) -> ProjectResponse:
    return ProjectResponse(
        name=project.name,
        description=project.description,
        main=_repo_to_response(project.main) if project.main is not None else None,
        subs=[_repo_to_response(r) for r in project.ordered_subs()],
    )


def _run_refresh(force: bool) -> None:
    """Background refresh job; the HTTP request returns before it finishes."""

    cache = _service.refresh(force=force)
    logger.info("Background refresh done: %d repositories cached", len(cache.repos.data))


@app.get("/health")
async def health() -> Dict[str, str]:
    """Simple health check endpoint."""

    return {"status": "ok"}


@app.get("/repos", response_model=List[RepoResponse])
def list_repos() -> List[RepoResponse]:
    """Standalone repositories, most recently updated first."""

    view = _service.view()
    return [_repo_to_response(r) for r in sorted(view.repos.values(), reverse=True)]


@app.get("/projects", response_model=List[ProjectResponse])
def list_projects() -> List[ProjectResponse]:
    """Multi-repository projects ordered by name."""

    view = _service.view()
    return [_project_to_response(view.projects[name]) for name in sorted(view.projects)]


@app.get("/projects/{name}", response_model=ProjectResponse)
def get_project(name: str) -> ProjectResponse:
    view = _service.view()
    project = view.projects.get(name)
    if project is None:
        raise HTTPException(status_code=404, detail=f"Project not found: {name}")
    return _project_to_response(project)


@app.get("/colors")
def list_colors() -> Dict[str, str]:
    """Language name to hex colour, as cached from Linguist."""

    return _service.colors()


@app.post("/refresh", response_model=RefreshResponse, status_code=202)
async def refresh(background_tasks: BackgroundTasks, force: bool = False) -> RefreshResponse:
    """Schedule a cache refresh; remote queries can take a while."""

    background_tasks.add_task(_run_refresh, force)
    return RefreshResponse(status="scheduled", force=force)


@app.post("/repos", response_model=RepoResponse, status_code=201)
def add_repo(payload: RepoAddRequest) -> RepoResponse:
    """Fetch a single repository by URL and merge it into the cache."""

    try:
        record = _service.add_repo(payload.url)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve)) from ve
    except RuntimeError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return _repo_to_response(record)
