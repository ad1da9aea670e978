from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

COMMONS_API_URL = "https://commons.wikimedia.org/w/api.php"
COMMONS_THUMB_URL = "https://commons.wikimedia.org/w/thumb.php?f={file}&w={width}"
USER_AGENT = "WhereX/0.3 (daily geography puzzle)"

SKIPPED_EXTENSIONS = (".pdf", ".doc", ".svg", ".txt")


class WikimediaImageSearch:
    """Looks up freely licensed photos on Wikimedia Commons.

    Network failures never raise; the caller gets an empty list and the
    clue generator falls back to another kind.
    """

    def __init__(self, timeout: float = 10.0, thumb_width: int = 300, session: Optional[requests.Session] = None) -> None:
        self.timeout = timeout
        self.thumb_width = thumb_width
        self.session = session or requests.Session()
        self._cache: Dict[Tuple[str, int], List[str]] = {}

    def search(self, query: str, limit: int = 1) -> List[str]:
        key = (query, limit)
        if key in self._cache:
            return list(self._cache[key])

        params = {
            "action": "query",
            "format": "json",
            "list": "search",
            "srsearch": query,
            "srnamespace": 6,
            "srlimit": limit * 5,
        }
        try:
            r = self.session.get(
                COMMONS_API_URL,
                params=params,
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Image search failed for %r: %s", query, exc)
            return []

        urls: List[str] = []
        for item in data.get("query", {}).get("search", []):
            title = str(item.get("title", ""))
            file_name = title.split(":", 1)[-1]
            if not file_name or file_name.lower().endswith(SKIPPED_EXTENSIONS):
                continue
            urls.append(self.thumbnail_url(file_name))
            if len(urls) >= limit:
                break

        if not urls:
            logger.info("No images found for %r", query)
        self._cache[key] = urls
        return list(urls)

    def thumbnail_url(self, file_name: str) -> str:
        return COMMONS_THUMB_URL.format(file=quote(file_name), width=self.thumb_width)
