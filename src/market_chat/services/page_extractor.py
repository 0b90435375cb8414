"""Best-effort extraction of readable text from a URL in the user's message."""
import logging
import re

import httpx
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

URL_RE = re.compile(r"https?://[^\s<>\"')\]]+")
DEFAULT_MAX_CHARS = 4000


def find_url(text: str) -> str | None:
    """First http(s) URL in the text, without trailing sentence punctuation."""
    match = URL_RE.search(text)
    if match is None:
        return None
    return match.group().rstrip(".,;:!?")


def html_to_text(html: str, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Visible text of an HTML document, whitespace-collapsed and truncated."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "header", "footer", "nav"]):
        tag.decompose()
    text = " ".join(soup.get_text(separator=" ").split())
    return text[:max_chars]


class PageExtractor:
    """Fetches a page and returns up to ``max_chars`` of its text, or None."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        max_chars: int = DEFAULT_MAX_CHARS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._max_chars = max_chars
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": "Mozilla/5.0 (compatible; MarketChat/0.1)"},
            transport=transport,
        )

    async def extract(self, url: str) -> str | None:
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Page fetch failed for %s: %s", url, exc)
            return None
        content_type = response.headers.get("content-type", "")
        if "html" not in content_type and "text" not in content_type:
            logger.info("Skipping non-text page %s (%s)", url, content_type)
            return None
        text = html_to_text(response.text, self._max_chars)
        return text or None

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
