"""
External Integrations

Clients for the services the processors consume:
- HTTP base client (httpx)
- Content fetcher with markup extraction (BeautifulSoup)
- Claude completions and OpenAI embeddings
- PageSpeed Insights and SerpApi
- ExternalClients: builds the above from Settings
"""

from .ai import AnalysisResponse, ClaudeClient, EmbeddingClient, TokenUsage, cosine, extract_json
from .clients import ExternalClients
from .fetcher import ContentFetcher, Heading, PageContent, parse_page, site_url
from .http import APIClient
from .pagespeed import PageSpeedClient, PageSpeedReport, parse_report
from .serp import SerpApiClient, find_domain_position, normalize_domain

__all__ = [
    "AnalysisResponse",
    "ClaudeClient",
    "EmbeddingClient",
    "TokenUsage",
    "cosine",
    "extract_json",
    "ExternalClients",
    "ContentFetcher",
    "Heading",
    "PageContent",
    "parse_page",
    "site_url",
    "APIClient",
    "PageSpeedClient",
    "PageSpeedReport",
    "parse_report",
    "SerpApiClient",
    "find_domain_position",
    "normalize_domain",
]
