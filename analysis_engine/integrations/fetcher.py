"""
Content Fetcher

Fetches raw page markup and extracts the on-page signals the processors
score: title, meta description, heading outline, visible text,
paragraphs, links, images and a few performance hints.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from .http import APIClient
from ..utils.text import split_words

logger = logging.getLogger(__name__)


@dataclass
class Heading:
    level: int
    text: str


@dataclass
class PageContent:
    """Signals extracted from one page."""
    url: str
    title: Optional[str] = None             # None when the page has no <title>
    meta_description: Optional[str] = None  # None when no description meta
    headings: List[Heading] = field(default_factory=list)
    text: str = ""
    paragraphs: List[str] = field(default_factory=list)
    images: int = 0
    internal_links: int = 0
    external_links: int = 0
    has_viewport: bool = False
    script_count: int = 0
    stylesheet_count: int = 0
    html_size: int = 0

    @property
    def word_count(self) -> int:
        return len(split_words(self.text))

    def heading_count(self, level: int) -> int:
        return sum(1 for h in self.headings if h.level == level)

    @property
    def body(self) -> str:
        """Paragraph text joined by blank lines."""
        if self.paragraphs:
            return "\n\n".join(self.paragraphs)
        return self.text


def is_internal_link(href: str, page_url: str) -> bool:
    """Same-host absolute links and relative links count as internal."""
    href = (href or "").strip()
    if not href:
        return False
    if href.startswith("http"):
        return urlparse(href).hostname == urlparse(page_url).hostname
    return href.startswith("/") or ":" not in href


def parse_page(html: str, url: str) -> PageContent:
    """
    Extract page signals from markup.

    Args:
        html: Raw page markup
        url: Page URL, used to classify links

    Returns:
        PageContent
    """
    soup = BeautifulSoup(html or "", "html.parser")

    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag is not None else None

    meta_tag = soup.find("meta", attrs={"name": re.compile(r"^description$", re.I)})
    meta_description = None
    if meta_tag is not None:
        meta_description = (meta_tag.get("content") or "").strip()

    viewport = soup.find("meta", attrs={"name": re.compile(r"^viewport$", re.I)})
    script_count = len(soup.find_all("script"))
    stylesheet_count = len(soup.find_all("link", rel="stylesheet"))

    headings = [
        Heading(level=int(tag.name[1]), text=tag.get_text(" ", strip=True))
        for tag in soup.find_all(re.compile(r"^h[1-6]$"))
    ]

    internal = external = 0
    for a in soup.find_all("a", href=True):
        if is_internal_link(a["href"], url):
            internal += 1
        else:
            external += 1

    images = len(soup.find_all("img"))

    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()

    paragraphs = [
        p.get_text(" ", strip=True)
        for p in soup.find_all("p")
        if p.get_text(strip=True)
    ]
    body = soup.body or soup
    text = re.sub(r"\s+", " ", body.get_text(" ", strip=True)).strip()

    return PageContent(
        url=url,
        title=title,
        meta_description=meta_description,
        headings=headings,
        text=text,
        paragraphs=paragraphs,
        images=images,
        internal_links=internal,
        external_links=external,
        has_viewport=viewport is not None,
        script_count=script_count,
        stylesheet_count=stylesheet_count,
        html_size=len(html or ""),
    )


class ContentFetcher(APIClient):
    """
    Fetches pages over HTTP.

    Usage:
        async with ContentFetcher() as fetcher:
            page = await fetcher.fetch_page("https://example.com")
    """

    SERVICE_NAME = "content fetch"

    def __init__(self, user_agent: str = "Mozilla/5.0 (compatible; AnalysisEngine/0.4)", **kwargs):
        headers = {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
        }
        super().__init__(headers=headers, **kwargs)

    async def fetch(self, url: str) -> str:
        """Return raw markup for a URL."""
        response = await self._request("GET", url)
        return response.text

    async def fetch_page(self, url: str) -> PageContent:
        html = await self.fetch(url)
        return parse_page(html, url)

    async def exists(self, url: str) -> bool:
        """True when the URL answers with a non-error status."""
        try:
            await self._request("GET", url)
            return True
        except Exception as e:
            logger.debug(f"{url} not reachable: {e}")
            return False


def site_url(url: str, path: str) -> str:
    """Resolve a root-relative path against a site's origin."""
    parsed = urlparse(url)
    return urljoin(f"{parsed.scheme}://{parsed.netloc}", path)
