from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from urllib import error, request

logger = logging.getLogger(__name__)


@dataclass
class UrlResolver:
    """Follows redirects to find the canonical form of a URL.

    Used to compare the child links a project declares in its README with
    the URLs of its actual sub repositories (``github.com/User/Repo`` and
    ``https://github.com/user/repo`` end up at the same address).
    """

    timeout: int = 10
    user_agent: str = "reposcrape-resolver"

    def resolve(self, url: str) -> Optional[str]:
        """Return the final redirect-resolved URL, or ``None`` on any failure."""

        target = url.strip()
        if not target:
            return None
        if "://" not in target:
            target = "https://" + target

        req = request.Request(target, headers={"User-Agent": self.user_agent})
        try:
            with request.urlopen(req, timeout=self.timeout) as resp:
                return resp.geturl()
        except (error.URLError, ValueError, OSError) as exc:
            # HTTPError (4xx/5xx) is a URLError subclass.
            logger.debug("Failed to resolve %s: %s", url, exc)
            return None
