"""
SerpApi Client

Google organic results for ranking comparisons between a target domain
and its competitors.

API: https://serpapi.com/search-api
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from .http import APIClient

logger = logging.getLogger(__name__)


def normalize_domain(value: str) -> str:
    """Bare hostname without scheme or leading www."""
    value = (value or "").strip().lower()
    host = urlparse(value).hostname if "://" in value else value.split("/")[0]
    host = host or ""
    return host[4:] if host.startswith("www.") else host


def find_domain_position(results: List[Dict[str, Any]], domain: str) -> Optional[int]:
    """Best organic position held by a domain, or None."""
    target = normalize_domain(domain)
    for result in results:
        host = normalize_domain(result.get("link", ""))
        if host == target or host.endswith(f".{target}"):
            return result.get("position")
    return None


class SerpApiClient(APIClient):
    """Async client for SerpApi Google search."""

    SERVICE_NAME = "SERP API"
    BASE_URL = "https://serpapi.com"

    def __init__(self, api_key: str, timeout: float = 15.0, **kwargs):
        if not api_key:
            raise ValueError("SERPAPI_API_KEY not provided")
        super().__init__(timeout=timeout, **kwargs)
        self.api_key = api_key

    async def search(
        self,
        keyword: str,
        location: Optional[str] = None,
        num: int = 100,
    ) -> List[Dict[str, Any]]:
        """
        Organic results for a keyword.

        Returns:
            [{"position": int, "link": str, "title": str}, ...]
        """
        params = {
            "engine": "google",
            "q": keyword,
            "api_key": self.api_key,
            "num": num,
        }
        if location:
            params["location"] = location

        data = await self._get_json("/search.json", params=params)
        results = [
            {
                "position": r.get("position", 0),
                "link": r.get("link", ""),
                "title": r.get("title", ""),
            }
            for r in data.get("organic_results", [])
        ]
        logger.debug(f"SERP '{keyword}': {len(results)} organic results")
        return results
