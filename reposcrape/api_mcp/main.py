from __future__ import annotations

"""
FastMCP entrypoint exposing the aggregated repository view.

Usage (after installing ``mcp`` in your environment, e.g. ``pip install "mcp[cli]"``):

    # stdio transport (good for local desktop integrations)
    python -m reposcrape.api_mcp.main
"""

from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from . import server as logic


mcp = FastMCP("reposcrape")


@mcp.tool(name="list_repos")
def list_repos_tool() -> List[Dict[str, Any]]:
    """List standalone repositories (those not grouped into a project)."""

    return logic.list_repos()


@mcp.tool(name="list_projects")
def list_projects_tool() -> List[Dict[str, Any]]:
    """List multi-repository projects with their main and sub repositories."""

    return logic.list_projects()


@mcp.tool(name="get_project")
def get_project_tool(name: str) -> Optional[Dict[str, Any]]:
    """Return one project by name, or null if no such project exists."""

    return logic.get_project(name)


def main() -> None:
    """Run the FastMCP server using stdio transport by default."""

    # stdout carries the stdio transport, so no stdout log handler here.
    mcp.run()


if __name__ == "__main__":
    main()
