from __future__ import annotations

import logging
from typing import Any, Dict
from urllib import error, request

import yaml

logger = logging.getLogger(__name__)

LINGUIST_LANGUAGES_URL = (
    "https://github.com/github-linguist/linguist/raw/master/lib/linguist/languages.yml"
)


def parse_language_colors(text: str) -> Dict[str, str]:
    """Map language name to its hex colour from Linguist's ``languages.yml``."""

    languages: Any = yaml.safe_load(text)
    if not isinstance(languages, dict):
        raise RuntimeError("languages.yml did not parse into a mapping")

    colors: Dict[str, str] = {}
    for lang, info in languages.items():
        if isinstance(info, dict) and info.get("color"):
            colors[str(lang)] = str(info["color"])
    return colors


def fetch_language_colors(url: str = LINGUIST_LANGUAGES_URL, timeout: int = 30) -> Dict[str, str]:
    """Download and parse the Linguist colour table."""

    req = request.Request(url, headers={"User-Agent": "reposcrape"})
    try:
        with request.urlopen(req, timeout=timeout) as resp:
            body = resp.read().decode("utf-8")
    except error.HTTPError as e:
        raise RuntimeError(f"Language colour request failed with HTTP {e.code}") from e
    except error.URLError as e:
        raise RuntimeError(f"Failed to fetch language colours: {e}") from e
    except TimeoutError as e:
        raise RuntimeError(f"Language colour request timed out after {timeout}s") from e

    try:
        colors = parse_language_colors(body)
    except yaml.YAMLError as e:
        raise RuntimeError(f"Failed to parse languages.yml: {e}") from e

    logger.info("Fetched %d language colours", len(colors))
    return colors
