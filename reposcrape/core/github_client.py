from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple
from urllib import error, request

from ..config.sources import SourceConfig, load_sources_config
from .epoch import from_rfc3339, now_millis, to_date_str
from .metadata import extract, resolve_meta_urls
from .models import RepositoryRecord
from .url_resolver import UrlResolver

logger = logging.getLogger(__name__)

ORIGIN = "GitHub"

_REPO_FIELDS = """
            id
            name
            url
            pushedAt
            owner { login }
            object(expression: "HEAD:README.md") {
                ... on Blob {
                    text
                }
            }"""


def _qstr_latest(user: str, max_count: int) -> str:
    return (
        "query {\n"
        f'    user(login: "{user}") {{\n'
        f"        repositories(first: {max_count}, orderBy: {{ field: UPDATED_AT, direction: DESC }}) {{\n"
        f"            nodes {{{_REPO_FIELDS}\n"
        "            }\n"
        "        }\n"
        "    }\n"
        "}"
    )


def _qstr_after(user: str, max_count: int, after_date: str) -> str:
    return (
        "query {\n"
        f'    search(type: REPOSITORY, first: {max_count}, query: "user:{user} pushed:>{after_date}") {{\n'
        "        nodes {\n"
        f"            ... on Repository {{{_REPO_FIELDS}\n"
        "            }\n"
        "        }\n"
        "    }\n"
        "}"
    )


def _qstr_single(owner: str, name: str) -> str:
    return (
        "query {\n"
        f'    repository(owner: "{owner}", name: "{name}") {{{_REPO_FIELDS}\n'
        "    }\n"
        "}"
    )


def parse_repo_url(url: str) -> Tuple[str, str]:
    """Return ``(owner, name)`` for an https or ssh repository URL."""

    u = url.strip()
    # SSH: git@github.com:owner/repo.git
    m = re.match(r"^git@([^:]+):([^/]+)/([^/]+?)(?:\.git)?$", u)
    if m:
        return m.group(2), m.group(3)
    # HTTPS: https://host/owner/repo(.git)?
    m = re.match(r"^(?:https?://)?[^/]+/([^/]+)/([^/]+?)(?:\.git)?/?$", u)
    if m:
        return m.group(1), m.group(2)
    raise ValueError(
        f"Cannot parse repository URL {url!r}; expected https://github.com/owner/repo "
        "or git@github.com:owner/repo.git"
    )


def raw_url(repo_url: str) -> str:
    """Base URL for raw files on the default branch, with a trailing slash."""

    return repo_url.rstrip("/") + "/raw/HEAD/"


def find_nodes(value: Any) -> Optional[Any]:
    """Depth-first search for the first ``nodes`` entry in a GraphQL response."""

    if isinstance(value, dict):
        if "nodes" in value:
            return value["nodes"]
        for child in value.values():
            found = find_nodes(child)
            if found is not None:
                return found
    elif isinstance(value, list):
        for child in value:
            found = find_nodes(child)
            if found is not None:
                return found
    return None


def record_from_node(
    node: Any, synced_at: int, resolver: Optional[UrlResolver] = None
) -> Optional[RepositoryRecord]:
    """Build a record from one repository node.

    Returns ``None`` for nodes missing required fields, including
    repositories without a README.md. With a ``resolver``, HIGHLIGHT and
    LOGO links are resolved against the repository before coercion.
    """

    if not isinstance(node, dict):
        return None
    try:
        repo_id = str(node["id"])
        name = str(node["name"])
        owner = str(node["owner"]["login"])
        readme = node["object"]["text"]
    except (KeyError, TypeError):
        return None
    if not isinstance(readme, str):
        return None

    pushed_at = node.get("pushedAt")
    try:
        last_update = from_rfc3339(pushed_at) if pushed_at else synced_at
    except ValueError:
        logger.warning("Unparseable pushedAt %r for %s/%s", pushed_at, owner, name)
        last_update = synced_at

    url = str(node.get("url") or f"https://github.com/{owner}/{name}")
    metadata = extract(readme)
    if resolver is not None:
        resolve_meta_urls(raw_url(url), metadata, resolver)

    return RepositoryRecord.create(
        id=repo_id,
        url=url,
        name=name,
        owner=owner,
        origin=ORIGIN,
        last_sync=synced_at,
        last_update=last_update,
        metadata=metadata,
    )


@dataclass
class GitHubClient:
    """Fetches repositories and their README annotations from GitHub GraphQL.

    请求方式：POST {base_url}，Authorization: Bearer <token>，body 为
    {"query": "..."}；README.md 文本直接在同一次查询中取回。
    """

    source: SourceConfig
    timeout: int = 30
    resolver: Optional[UrlResolver] = None

    @classmethod
    def from_default_config(
        cls,
        source_name: str = "",
        timeout: int = 30,
        resolver: Optional[UrlResolver] = None,
    ) -> "GitHubClient":
        cfg = load_sources_config()
        return cls(cfg.get_source(source_name), timeout=timeout, resolver=resolver)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def fetch_latest(self, user: str, max_count: int) -> Set[RepositoryRecord]:
        """The user's ``max_count`` most recently updated repositories."""

        return self._call_nodes(_qstr_latest(user, max_count))

    def fetch_after(self, user: str, max_count: int, after_epoch: int) -> Set[RepositoryRecord]:
        """Repositories of ``user`` pushed after ``after_epoch`` (millis)."""

        return self._call_nodes(_qstr_after(user, max_count, to_date_str(after_epoch)))

    def fetch_single(self, url: str) -> RepositoryRecord:
        owner, name = parse_repo_url(url)
        response = self._post_query(_qstr_single(owner, name))
        node = (response.get("data") or {}).get("repository")
        record = record_from_node(node, now_millis(), self._get_resolver())
        if record is None:
            raise RuntimeError(f"Repository {owner}/{name} not found or has no README.md")
        return record

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _call_nodes(self, query: str) -> Set[RepositoryRecord]:
        response = self._post_query(query)

        nodes = find_nodes(response)
        if nodes is None:
            raise RuntimeError("Failed to find nodes in query response")
        if not isinstance(nodes, list):
            raise RuntimeError("Query response nodes is not a list")

        synced_at = now_millis()
        resolver = self._get_resolver()
        result: Set[RepositoryRecord] = set()
        for node in nodes:
            record = record_from_node(node, synced_at, resolver)
            if record is None:
                continue
            result.add(record)
        logger.info("Fetched %d repositories (%d nodes)", len(result), len(nodes))
        return result

    def _get_resolver(self) -> UrlResolver:
        if self.resolver is None:
            self.resolver = UrlResolver(timeout=self.timeout)
        return self.resolver

    def _post_query(self, query: str) -> Dict[str, Any]:
        token = self.source.token
        if not token:
            raise RuntimeError(
                f"No API token found in environment variable {self.source.token_env}. "
                "Please export a GitHub token before refreshing."
            )

        data = json.dumps({"query": query}).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
            "User-Agent": "reposcrape",
        }
        req = request.Request(self.source.base_url, data=data, headers=headers, method="POST")
        body = self._send(req)

        try:
            parsed = json.loads(body)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"Unexpected response from GraphQL endpoint: {body[:400]}") from e
        if not isinstance(parsed, dict):
            raise RuntimeError(f"Unexpected response from GraphQL endpoint: {body[:400]}")

        errors: List[Dict[str, Any]] = parsed.get("errors") or []
        if errors:
            messages = "; ".join(str(e.get("message", e)) for e in errors)
            raise RuntimeError(f"GraphQL query failed: {messages}")
        return parsed

    def _send(self, req: request.Request) -> str:
        try:
            with request.urlopen(req, timeout=self.timeout) as resp:
                return resp.read().decode("utf-8")
        except error.HTTPError as e:
            msg = e.read().decode("utf-8", errors="ignore")
            raise RuntimeError(f"GraphQL request failed with HTTP {e.code}: {msg}") from e
        except error.URLError as e:
            raise RuntimeError(f"Failed to call GraphQL endpoint: {e}") from e
        except TimeoutError as e:
            raise RuntimeError(f"GraphQL request timed out after {self.timeout}s") from e
