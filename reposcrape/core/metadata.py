from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List

from .url_resolver import UrlResolver

logger = logging.getLogger(__name__)


# One README annotation per line, written as an HTML comment:
#   <!-- KEY: value -->      key/value pair
#   <!-- NAME START -->      opens a multi-line section
#   <!-- NAME END -->        closes it
#   <!-- KEYWORD -->         the next raw line is the value
_ANNOTATION_RE = re.compile(
    r"(?i)^\s*<!--\s*("
    r"(?P<key>\w*?):\s*(?P<val>.*?)"
    r"|(?P<start>\w+\s*START)"
    r"|(?P<end>\w+\s*END)"
    r"|(?P<keyword>\w+?)"
    r")\s*-\s*-\s*>"
)
_SECTION_NAME_RE = re.compile(r"(?i)^(?P<name>.+?)\s*?(START|END)")

_URL_RE = re.compile(
    r"(?:https?://)?(?:www\.)?"
    r"[-a-zA-Z0-9@:%._+~#=]{2,256}\.[a-z]{2,6}\b"
    r"[-a-zA-Z0-9@:%_+.~#?&/=]*"
)

STATUS_KEY = "STATUS"
_STATUS_DECORATION = "*`"

# Keywords whose value is an image or page link, relative to the repository.
URL_KEYWORDS = ("HIGHLIGHT", "LOGO")
_MD_LINK_RE = re.compile(r"\[.*?\]\(<?(?P<path>.*?)>?(?:\s+\".*?\")?\)")


def _lines(text: str) -> List[str]:
    r"""Split on ``\n`` only, dropping one trailing ``\r`` per line.

    Form feeds, vertical tabs and Unicode separators stay inside the line.
    """

    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _section_name(captured: str) -> str:
    """Normalise ``"Name START"`` / ``"name end"`` to ``"NAME"``."""

    match = _SECTION_NAME_RE.match(captured.upper())
    if match is None:
        return ""
    return match.group("name").upper()


def extract(text: str) -> Dict[str, str]:
    """Recover annotation metadata from README-like text.

    Keys are upper-cased. Later ``KEY: value`` lines overwrite earlier
    ones, while a bare keyword only captures its next line the first
    time it appears. Section bodies are trimmed line by line, blank
    lines dropped, and joined with single spaces.
    """

    data: Dict[str, str] = {}

    in_section = False
    section_name = ""
    section_lines: List[str] = []
    pending_keyword = ""

    for line in _lines(text):
        if pending_keyword:
            data.setdefault(pending_keyword, line)
            pending_keyword = ""

        match = _ANNOTATION_RE.match(line)
        if match is None:
            if in_section:
                trimmed = line.strip()
                if trimmed:
                    section_lines.append(trimmed)
            continue

        if match.group("keyword") is not None:
            pending_keyword = match.group("keyword").upper()
        elif match.group("start") is not None:
            # A START inside an open section restarts accumulation.
            section_name = _section_name(match.group("start"))
            section_lines = []
            in_section = True
        elif match.group("end") is not None:
            if not in_section or _section_name(match.group("end")) != section_name:
                logger.warning("Malformed section found: %s", line.strip())
                continue
            data[section_name] = " ".join(section_lines)
            in_section = False
        elif match.group("key") is not None and match.group("val") is not None:
            data[match.group("key").upper()] = match.group("val").strip()

    if STATUS_KEY in data:
        data[STATUS_KEY] = data[STATUS_KEY].strip().strip(_STATUS_DECORATION)

    return data


def extract_urls(lines: Iterable[str]) -> List[str]:
    """Return every URL-like substring of ``lines`` in order of appearance."""

    urls: List[str] = []
    for line in lines:
        urls.extend(m.group(0) for m in _URL_RE.finditer(line))
    return urls


def resolve_urls(candidates: Iterable[str], resolver: UrlResolver) -> List[str]:
    """Resolve every URL found in ``candidates``, keeping only those that answer."""

    resolved: List[str] = []
    for url in extract_urls(candidates):
        final = resolver.resolve(url)
        if final is not None:
            resolved.append(final)
    return resolved


def resolve_meta_urls(raw_url: str, data: Dict[str, str], resolver: UrlResolver) -> None:
    """Rewrite ``HIGHLIGHT``/``LOGO`` values in place to resolved URLs.

    A value may be a bare path or a markdown link/image; the link target is
    tried as written and relative to ``raw_url``. Every candidate that
    resolves is kept, one per line. Values with no resolvable candidate
    are left untouched.
    """

    for key, value in data.items():
        if key.upper() not in URL_KEYWORDS:
            continue

        match = _MD_LINK_RE.search(value)
        path = match.group("path") if match is not None else value
        joined = raw_url + path.strip().lstrip("./")

        resolved = resolve_urls([path, joined], resolver)
        logger.debug("Resolved %s=%r to %s", key, value, resolved)
        if resolved:
            data[key] = "\n".join(resolved)
