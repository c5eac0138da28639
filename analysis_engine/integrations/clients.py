"""
External Client Factory

Builds the external clients a runner needs from Settings. Clients whose
credentials are missing (or which are disabled) are None, and the
processors degrade accordingly.
"""

import logging
from typing import Optional

from .ai import ClaudeClient, EmbeddingClient
from .fetcher import ContentFetcher
from .pagespeed import PageSpeedClient
from .serp import SerpApiClient

logger = logging.getLogger(__name__)


class ExternalClients:
    """
    Factory and manager for external clients.

    Usage:
        clients = ExternalClients(get_settings())
        if clients.serp:
            results = await clients.serp.search("content marketing")
        await clients.close()
    """

    def __init__(self, settings):
        self.settings = settings
        self._fetcher: Optional[ContentFetcher] = None
        self._pagespeed: Optional[PageSpeedClient] = None
        self._serp: Optional[SerpApiClient] = None
        self._claude: Optional[ClaudeClient] = None
        self._embeddings: Optional[EmbeddingClient] = None

    @property
    def fetcher(self) -> ContentFetcher:
        if self._fetcher is None:
            self._fetcher = ContentFetcher(
                user_agent=self.settings.USER_AGENT,
                timeout=self.settings.HTTP_TIMEOUT,
            )
        return self._fetcher

    @property
    def pagespeed(self) -> Optional[PageSpeedClient]:
        if not self.settings.PAGESPEED_ENABLED:
            return None
        if self._pagespeed is None:
            self._pagespeed = PageSpeedClient(api_key=self.settings.PAGESPEED_API_KEY)
            logger.info("Initialized PageSpeed Insights client")
        return self._pagespeed

    @property
    def serp(self) -> Optional[SerpApiClient]:
        if not self.settings.SERPAPI_API_KEY:
            return None
        if self._serp is None:
            self._serp = SerpApiClient(
                api_key=self.settings.SERPAPI_API_KEY,
                timeout=self.settings.HTTP_TIMEOUT,
            )
            logger.info("Initialized SerpApi client")
        return self._serp

    @property
    def claude(self) -> Optional[ClaudeClient]:
        if not self.settings.ANTHROPIC_API_KEY:
            return None
        if self._claude is None:
            self._claude = ClaudeClient(
                api_key=self.settings.ANTHROPIC_API_KEY,
                model=self.settings.CLAUDE_MODEL,
            )
            logger.info("Initialized Claude client")
        return self._claude

    @property
    def embeddings(self) -> Optional[EmbeddingClient]:
        if not self.settings.OPENAI_API_KEY:
            return None
        if self._embeddings is None:
            self._embeddings = EmbeddingClient(
                api_key=self.settings.OPENAI_API_KEY,
                model=self.settings.EMBEDDING_MODEL,
            )
            logger.info("Initialized embedding client")
        return self._embeddings

    def log_status(self):
        s = self.settings
        logger.info(
            f"External client status: "
            f"Claude={'enabled' if s.ANTHROPIC_API_KEY else 'disabled'}, "
            f"Embeddings={'enabled' if s.OPENAI_API_KEY else 'disabled'}, "
            f"SerpApi={'enabled' if s.SERPAPI_API_KEY else 'disabled'}, "
            f"PageSpeed={'enabled' if s.PAGESPEED_ENABLED else 'disabled'}"
        )

    async def close(self):
        """Close HTTP clients that were created."""
        for client in (self._fetcher, self._pagespeed, self._serp):
            if client is not None:
                await client.close()
