"""HTTP fetching for reaction summaries.

Fetches referenced web pages and reduces them to plain text. Best-effort:
any failure yields no content instead of an error.
"""

import asyncio
import re
from typing import List, Optional

import httpx

from ..config import get_settings
from ..log import get_logger
from ..schemas.conversation import UrlContent

settings = get_settings()
logger = get_logger("fetch")

_SCRIPT_RE = re.compile(r"<script[\s\S]*?</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style[\s\S]*?</style>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")

_ENTITIES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#039;", "'"),
)


def html_to_text(html: str, limit: int) -> str:
    """Strip script/style blocks and tags, decode common entities, collapse whitespace."""
    text = _SCRIPT_RE.sub("", html)
    text = _STYLE_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    return _WS_RE.sub(" ", text).strip()[:limit]


class Fetcher:
    def __init__(self):
        self.headers = {
            "User-Agent": "IdealX-Bot/2.0 (Discord summary bot)"
        }

    async def _get_text(self, url: str) -> Optional[str]:
        async with httpx.AsyncClient(
            timeout=settings.FETCH_TIMEOUT_SECONDS,
            follow_redirects=True,
            headers=self.headers,
        ) as client:
            resp = await client.get(url)
            content_type = resp.headers.get("content-type", "")
            if "text/html" not in content_type:
                logger.debug(f"Skipping {url}: content-type {content_type!r}")
                return None
            if not resp.is_success:
                logger.debug(f"Skipping {url}: HTTP {resp.status_code}")
                return None
            return html_to_text(resp.text, settings.MAX_CONTENT_CHARS)

    async def fetch_url(self, url: str) -> Optional[str]:
        """
        Fetches a page and returns its text content.
        Returns None for non-2xx responses, non-HTML content, timeouts or any other exception.
        """
        try:
            return await asyncio.wait_for(self._get_text(url), settings.FETCH_TIMEOUT_SECONDS)
        except Exception as e:
            logger.debug(f"Fetch failed for {url}: {e!r}")
            return None

    async def fetch_all(self, urls: List[str]) -> List[UrlContent]:
        """Fetch urls concurrently; failed or empty fetches are dropped."""
        results = await asyncio.gather(*(self.fetch_url(url) for url in urls))
        return [
            UrlContent(url=url, content=content)
            for url, content in zip(urls, results)
            if content
        ]

fetcher = Fetcher()
