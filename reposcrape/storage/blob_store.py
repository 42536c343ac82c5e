from __future__ import annotations

import json
import logging
import os
import zlib
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict

from ..core.cachable import DEFAULT_COLORS_TTL_DAYS, DEFAULT_REPOS_TTL_DAYS, Cachable, Cache
from ..core.models import RepoDetails, RepositoryRecord

logger = logging.getLogger(__name__)


class CacheDecodeError(ValueError):
    """Raised when a cache blob cannot be decompressed or decoded."""


class CacheEncodeError(ValueError):
    """Raised when a cache cannot be serialised."""


# ---------------------------------------------------------------------------
# Record <-> plain dict
# ---------------------------------------------------------------------------


def _record_to_dict(record: RepositoryRecord) -> Dict[str, Any]:
    return {
        "uid": record.uid,
        "id": record.id,
        "url": record.url,
        "name": record.name,
        "owner": record.owner,
        "origin": record.origin,
        "last_sync": record.last_sync,
        "last_update": record.last_update,
        "details": asdict(record.details) if record.details is not None else None,
    }


def _record_from_dict(raw: Dict[str, Any]) -> RepositoryRecord:
    details_raw = raw["details"]
    return RepositoryRecord(
        uid=str(raw["uid"]),
        id=str(raw["id"]),
        url=str(raw["url"]),
        name=str(raw["name"]),
        owner=str(raw["owner"]),
        origin=str(raw["origin"]),
        last_sync=int(raw["last_sync"]),
        last_update=int(raw["last_update"]),
        # Unknown or missing detail keys raise TypeError: the blob is
        # versionless, so a schema change invalidates it.
        details=RepoDetails(**details_raw) if details_raw is not None else None,
    )


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------


def encode_cache(cache: Cache) -> bytes:
    """Serialise ``cache`` to a zlib-compressed JSON document."""

    try:
        document = {
            "repos": {
                "data": [_record_to_dict(r) for r in sorted(cache.repos.data)],
                "days_to_update": int(cache.repos.days_to_update),
                "last_update": int(cache.repos.last_update),
            },
            "colors": {
                "data": dict(sorted(cache.colors.data.items())),
                "days_to_update": int(cache.colors.days_to_update),
                "last_update": int(cache.colors.last_update),
            },
        }
        payload = json.dumps(document, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise CacheEncodeError(f"Failed to encode cache: {exc}") from exc

    return zlib.compress(payload.encode("utf-8"), 9)


def decode_cache(blob: bytes) -> Cache:
    """Inverse of :func:`encode_cache`; raises ``CacheDecodeError`` on any mismatch."""

    try:
        raw = json.loads(zlib.decompress(blob).decode("utf-8"))
    except (zlib.error, UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise CacheDecodeError(f"Failed to decompress cache: {exc}") from exc

    try:
        repos_raw = raw["repos"]
        colors_raw = raw["colors"]
        repos = Cachable(
            data={_record_from_dict(r) for r in repos_raw["data"]},
            days_to_update=int(repos_raw["days_to_update"]),
            last_update=int(repos_raw["last_update"]),
        )
        colors = Cachable(
            data={str(k): str(v) for k, v in dict(colors_raw["data"]).items()},
            days_to_update=int(colors_raw["days_to_update"]),
            last_update=int(colors_raw["last_update"]),
        )
    except (KeyError, TypeError, ValueError, AttributeError, ArithmeticError) as exc:
        raise CacheDecodeError(f"Cache schema mismatch: {exc}") from exc

    return Cache(repos=repos, colors=colors)


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------


def load_cache(
    path: Path,
    repos_ttl_days: int = DEFAULT_REPOS_TTL_DAYS,
    colors_ttl_days: int = DEFAULT_COLORS_TTL_DAYS,
) -> Cache:
    """Load the cache file, or return an empty default cache.

    缓存文件缺失、损坏或结构不匹配时都不会抛出异常，直接回退为空缓存，
    下一次 refresh 会重新拉取。
    """

    default = Cache.default(repos_ttl_days, colors_ttl_days)
    if not path.exists():
        return default
    try:
        return decode_cache(path.read_bytes())
    except (CacheDecodeError, OSError) as exc:
        logger.info("Discarding unreadable cache %s: %s", path, exc)
        return default


def save_cache(cache: Cache, path: Path) -> None:
    """Write the cache atomically (temp file + rename)."""

    blob = encode_cache(cache)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_bytes(blob)
    os.replace(tmp, path)
