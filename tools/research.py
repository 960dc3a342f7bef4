"""Research fetchers: Wikipedia topic summaries and web page text extraction."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

import httpx
from bs4 import BeautifulSoup, Comment

from config.exceptions import ResearchError
from tools.text_utils import collapse_whitespace

logger = logging.getLogger(__name__)

WIKIPEDIA_SUMMARY_URL = "https://en.wikipedia.org/api/rest_v1/page/summary/{title}"
USER_AGENT = "Mozilla/5.0 (compatible; Educational Content Creator/1.0)"

# Extracted page text is capped to keep prompts bounded
_MAX_PAGE_CHARS = 5000

# Elements whose text never reaches the reader
_HIDDEN_TAGS = ["script", "style", "noscript", "svg", "template"]


@dataclass(frozen=True)
class ResearchNote:
    """Text gathered from one external source."""
    title: str
    content: str
    url: str
    fetched_at: str


def extract_page_text(html: str, max_chars: int = _MAX_PAGE_CHARS) -> tuple[str, str]:
    """Parse HTML and return its visible text.

    Entities are decoded; comments and hidden elements are dropped.

    Returns:
        (title, text) with text truncated to ``max_chars`` plus an ellipsis.
    """
    soup = BeautifulSoup(html, "html.parser")

    title = "Untitled"
    if soup.title is not None:
        title = collapse_whitespace(soup.title.get_text()) or title
        soup.title.decompose()

    for tag in soup(_HIDDEN_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    text = collapse_whitespace(soup.get_text(separator=" ", strip=True))
    if len(text) > max_chars:
        text = text[:max_chars] + "..."
    return title, text


class Researcher:
    """Fetches background material for a topic before outlining."""

    def __init__(
        self,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=self._transport,
        )

    async def wikipedia_summary(self, topic: str) -> ResearchNote:
        """Fetch the Wikipedia summary for a topic.

        Raises:
            ResearchError: On network failure or a non-2xx response.
        """
        url = WIKIPEDIA_SUMMARY_URL.format(title=quote(topic.replace(" ", "_"), safe=""))
        logger.info("Researching topic on Wikipedia: %s", topic)
        try:
            async with self._client() as client:
                response = await client.get(url)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ResearchError(f"Wikipedia lookup failed for {topic!r}: {e}") from e

        summary = data.get("extract") or ""
        if not summary:
            raise ResearchError(f"Wikipedia returned no summary for {topic!r}")

        page_url = data.get("content_urls", {}).get("desktop", {}).get("page", "")
        logger.debug("Wikipedia summary for %s: %d chars", topic, len(summary))
        return ResearchNote(
            title=data.get("title") or topic,
            content=summary,
            url=page_url,
            fetched_at=datetime.now(timezone.utc).isoformat(),
        )

    async def fetch_page(self, url: str) -> ResearchNote:
        """Fetch a web page and return its visible text.

        Raises:
            ResearchError: On network failure or a non-2xx response.
        """
        logger.info("Fetching web page: %s", url)
        try:
            async with self._client() as client:
                response = await client.get(url)
                response.raise_for_status()
                html = response.text
        except httpx.HTTPError as e:
            raise ResearchError(f"Failed to fetch {url}: {e}") from e

        title, text = extract_page_text(html)
        return ResearchNote(
            title=title,
            content=text,
            url=url,
            fetched_at=datetime.now(timezone.utc).isoformat(),
        )
