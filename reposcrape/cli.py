"""
Command line interface for reposcrape.

Commands:
    reposcrape refresh [--force]   - Refetch repositories when the cache is stale
    reposcrape show [--json]       - Print standalone repositories and projects
    reposcrape extract <file>      - Show the annotations found in a README
    reposcrape add <url>           - Fetch one repository and merge it into the cache
"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict

import typer
from rich.console import Console
from rich.table import Table

from .core.coercion import build_details
from .core.epoch import to_date_str
from .core.logging import setup_logging
from .core.metadata import extract
from .core.models import AggregatedView, RepositoryRecord
from .core.scrape_service import ScrapeService

app = typer.Typer(
    help="Scrape repositories, group them into projects and cache the result.",
    no_args_is_help=True,
)
console = Console()


def _service() -> ScrapeService:
    return ScrapeService()


def _repo_summary(repo: RepositoryRecord) -> Dict[str, Any]:
    details = repo.details
    return {
        "uid": repo.uid,
        "name": repo.display_name,
        "url": repo.url,
        "last_update": to_date_str(repo.last_update),
        "status": details.status if details is not None else None,
    }


def _view_to_dict(view: AggregatedView) -> Dict[str, Any]:
    return {
        "repos": [_repo_summary(r) for r in sorted(view.repos.values(), reverse=True)],
        "projects": [
            {
                "name": name,
                "description": view.projects[name].description,
                "main": (
                    _repo_summary(view.projects[name].main)
                    if view.projects[name].main is not None
                    else None
                ),
                "subs": [_repo_summary(r) for r in view.projects[name].ordered_subs()],
            }
            for name in sorted(view.projects)
        ],
    }


@app.command()
def refresh(force: bool = typer.Option(False, "--force", "-f", help="Refetch even if the cache is fresh")) -> None:
    """Refetch repositories and language colours if the cache is empty or outdated."""

    cache = _service().refresh(force=force)
    console.print(
        f"[green]{len(cache.repos.data)} repositories[/green], "
        f"{len(cache.colors.data)} language colours cached"
    )


@app.command()
def show(as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of tables")) -> None:
    """Print the aggregated view: standalone repositories and projects."""

    view = _service().view()
    if as_json:
        typer.echo(json.dumps(_view_to_dict(view), indent=2, ensure_ascii=False))
        return

    if view.is_empty():
        console.print("[yellow]Cache is empty. Run `reposcrape refresh` first.[/yellow]")
        return

    repos_table = Table(title="Repositories")
    repos_table.add_column("Name", style="cyan")
    repos_table.add_column("Updated")
    repos_table.add_column("Status")
    repos_table.add_column("URL", style="dim")
    for repo in sorted(view.repos.values(), reverse=True):
        status = repo.details.status if repo.details is not None else None
        repos_table.add_row(repo.display_name, to_date_str(repo.last_update), status or "-", repo.url)
    console.print(repos_table)

    projects_table = Table(title="Projects")
    projects_table.add_column("Project", style="magenta")
    projects_table.add_column("Main", style="cyan")
    projects_table.add_column("Subs")
    for name in sorted(view.projects):
        project = view.projects[name]
        main = project.main.display_name if project.main is not None else "-"
        subs = ", ".join(r.display_name for r in project.ordered_subs())
        projects_table.add_row(name, main, subs or "-")
    console.print(projects_table)


@app.command("extract")
def extract_cmd(path: Path = typer.Argument(..., exists=True, dir_okay=False, help="README file to scan")) -> None:
    """Show the raw annotations in a README and how they coerce into details."""

    metadata = extract(path.read_text(encoding="utf-8", errors="ignore"))
    details = build_details(metadata, source=str(path))
    typer.echo(
        json.dumps(
            {
                "metadata": metadata,
                "details": asdict(details) if details is not None else None,
            },
            indent=2,
            ensure_ascii=False,
        )
    )


@app.command()
def add(url: str = typer.Argument(..., help="Repository URL, https or ssh form")) -> None:
    """Fetch a single repository and merge it into the cache."""

    try:
        record = _service().add_repo(url)
    except (ValueError, RuntimeError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)
    console.print(f"Added [cyan]{record.uid}[/cyan] ({record.url})")


def main() -> None:
    setup_logging()
    app()


if __name__ == "__main__":
    main()
