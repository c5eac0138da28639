"""
AI Collaborators

- ClaudeClient: chat completion returning structured JSON for content
  analysis, topic clustering and E-A-T scoring
- EmbeddingClient: OpenAI embeddings for cosine-similarity scoring

Both raise ExternalServiceError on failure so the caller's RetryPolicy
and fallback handling decide what happens next.
"""

import json
import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import anthropic
import numpy as np
from openai import AsyncOpenAI, OpenAIError

from ..utils.errors import ExternalServiceError

logger = logging.getLogger(__name__)


@dataclass
class TokenUsage:
    """Track token usage for cost calculation."""
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def estimated_cost(self) -> float:
        """Estimate cost based on Claude Sonnet 4 pricing."""
        # Sonnet 4 pricing: $3/1M input, $15/1M output
        input_cost = (self.input_tokens / 1_000_000) * 3.0
        output_cost = (self.output_tokens / 1_000_000) * 15.0
        return input_cost + output_cost


@dataclass
class AnalysisResponse:
    """Response from Claude analysis."""
    content: str
    usage: TokenUsage
    model: str
    stop_reason: str
    success: bool = True
    error: Optional[str] = None


def extract_json(content: str) -> Any:
    """
    Pull the first JSON object or array out of a model response.

    Raises:
        ValueError: When no parsable JSON is present
    """
    match = re.search(r"(\{[\s\S]*\}|\[[\s\S]*\])", content or "")
    if not match:
        raise ValueError("No JSON found in model response")
    return json.loads(match.group(1))


class ClaudeClient:
    """
    Async client for Claude API.

    Features:
    - Token usage tracking
    - JSON response extraction
    """

    SERVICE_NAME = "AI analysis"
    DEFAULT_MODEL = "claude-sonnet-4-20250514"
    MAX_TOKENS = 2000
    TEMPERATURE = 0.2

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
    ):
        """
        Initialize Claude client.

        Args:
            api_key: Anthropic API key (defaults to env var)
            model: Model to use (defaults to Sonnet 4)
        """
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY not provided")

        self.model = model or self.DEFAULT_MODEL
        self.async_client = anthropic.AsyncAnthropic(api_key=self.api_key)

        # Track cumulative usage
        self.total_usage = TokenUsage()
        self.call_count = 0

    async def analyze(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = MAX_TOKENS,
        temperature: float = TEMPERATURE,
    ) -> AnalysisResponse:
        """
        Send analysis prompt to Claude.

        Args:
            prompt: User prompt
            system: System prompt
            max_tokens: Maximum output tokens
            temperature: Sampling temperature

        Returns:
            AnalysisResponse with content and usage
        """
        try:
            kwargs = {
                "model": self.model,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "messages": [{"role": "user", "content": prompt}],
            }
            if system:
                kwargs["system"] = system

            response = await self.async_client.messages.create(**kwargs)

            content = ""
            for block in response.content:
                if hasattr(block, "text"):
                    content += block.text

            usage = TokenUsage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
            )
            self.total_usage.input_tokens += usage.input_tokens
            self.total_usage.output_tokens += usage.output_tokens
            self.call_count += 1

            logger.info(
                f"Claude call: {usage.input_tokens} in, {usage.output_tokens} out, "
                f"${usage.estimated_cost:.4f}"
            )

            return AnalysisResponse(
                content=content,
                usage=usage,
                model=self.model,
                stop_reason=response.stop_reason,
            )

        except anthropic.APIError as e:
            logger.error(f"Claude API error: {e}")
            return AnalysisResponse(
                content="",
                usage=TokenUsage(),
                model=self.model,
                stop_reason="error",
                success=False,
                error=str(e),
            )

    async def analyze_json(self, prompt: str, system: Optional[str] = None) -> Any:
        """
        Run a prompt that must answer with JSON.

        Raises:
            ExternalServiceError: API failure or unparsable answer
        """
        response = await self.analyze(prompt, system=system)
        if not response.success:
            raise ExternalServiceError(self.SERVICE_NAME, response.error or "Claude call failed")
        try:
            return extract_json(response.content)
        except ValueError as e:
            raise ExternalServiceError(
                self.SERVICE_NAME, f"Unparsable response: {e}", retryable=True
            ) from e


class EmbeddingClient:
    """
    OpenAI embeddings.

    Usage:
        client = EmbeddingClient(api_key="sk-...")
        score = await client.similarity(page_text, "content marketing")
    """

    SERVICE_NAME = "embedding"
    DEFAULT_MODEL = "text-embedding-3-small"
    MAX_INPUT_CHARS = 8000

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY not provided")
        self.model = model or self.DEFAULT_MODEL
        self.client = AsyncOpenAI(api_key=self.api_key)

    async def embed(self, texts: List[str]) -> List[List[float]]:
        """Embed a batch of texts."""
        if not texts:
            return []
        truncated = [t[: self.MAX_INPUT_CHARS] for t in texts]
        try:
            response = await self.client.embeddings.create(model=self.model, input=truncated)
        except OpenAIError as e:
            raise ExternalServiceError(self.SERVICE_NAME, f"Embedding request failed: {e}") from e
        return [item.embedding for item in response.data]

    async def similarity(self, text1: str, text2: str) -> float:
        """Cosine similarity of two texts' embeddings, in [0, 1]."""
        vectors = await self.embed([text1, text2])
        if len(vectors) != 2:
            raise ExternalServiceError(self.SERVICE_NAME, "Embedding response incomplete")
        return cosine(vectors[0], vectors[1])


def cosine(a: List[float], b: List[float]) -> float:
    va, vb = np.asarray(a, dtype=float), np.asarray(b, dtype=float)
    norm = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm == 0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / norm, 0.0, 1.0))
