"""Exa web search: project research and the price fallback tier."""

from __future__ import annotations

import logging
import re
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from nova.config import settings
from nova.errors import ExternalApiError, NetworkError

logger = logging.getLogger(__name__)

INSIGHT_KEYWORDS = (
    "market cap",
    "technology",
    "blockchain",
    "token",
    "supply",
    "founder",
    "launch",
    "partnership",
)
MAX_INSIGHTS = 10
NO_RESULTS = "No information found."

_SENTENCE_SPLIT = re.compile(r"[.!?]")


class SearchResult(BaseModel):
    """A single ranked search hit."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    url: str
    title: str = ""
    content: str = Field(default="", alias="text")
    score: float = 0.0
    published_date: str | None = Field(default=None, alias="publishedDate")
    author: str | None = None


def build_project_query(project: str, aspects: list[str] | tuple[str, ...] = ()) -> str:
    """``cryptocurrency <project> <aspects...>``"""
    return " ".join(["cryptocurrency", project, *aspects])


def extract_insights(results: list[SearchResult]) -> list[str]:
    """Sentences from *results* that mention one of :data:`INSIGHT_KEYWORDS`."""
    insights: list[str] = []
    for result in results:
        for sentence in _SENTENCE_SPLIT.split(result.content):
            sentence = sentence.strip()
            if sentence and any(kw in sentence for kw in INSIGHT_KEYWORDS):
                insights.append(sentence)
    return insights


def summarize(results: list[SearchResult]) -> str:
    """Numbered insights (up to ten), else the opening of the top result."""
    if not results:
        return NO_RESULTS

    insights = extract_insights(results)
    if insights:
        lines = [f"{i}. {text}" for i, text in enumerate(insights[:MAX_INSIGHTS], 1)]
        return "Project Insights:\n\n" + "\n".join(lines) + "\n"

    top = results[0]
    return f"Summary from {top.url}: {top.content[:500]}\n"


class ExaClient:
    """Thin async client for the Exa ``/search`` endpoint."""

    def __init__(self, *, api_url: str | None = None, timeout: float | None = None) -> None:
        self._api_url = api_url or settings.exa_api_url
        self._timeout = timeout if timeout is not None else settings.exa_timeout_seconds

    async def search(self, query: str, num_results: int = 3) -> list[SearchResult]:
        """Run *query* and return ranked results.

        Raises:
            ConfigurationError: EXA_API_KEY is empty.
            NetworkError: timeout or transport failure.
            ExternalApiError: non-200 status or an unreadable body.
        """
        api_key = settings.require("exa_api_key")
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "x-api-key": api_key,
        }
        payload: dict[str, Any] = {
            "query": query,
            "numResults": num_results,
            "contents": {"text": True},
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._api_url, headers=headers, json=payload)
        except httpx.TimeoutException as exc:
            msg = f"Exa search timed out after {self._timeout:g}s"
            raise NetworkError(msg) from exc
        except httpx.HTTPError as exc:
            msg = f"Exa search failed: {exc}"
            raise NetworkError(msg) from exc

        if resp.status_code != 200:
            logger.warning("Exa returned status %d: %s", resp.status_code, resp.text[:200])
            msg = f"Exa search failed with status {resp.status_code}"
            raise ExternalApiError(msg)

        try:
            data = resp.json()
            results = [SearchResult.model_validate(item) for item in data.get("results", [])]
        except (ValueError, AttributeError, ValidationError) as exc:
            msg = "Exa returned an unreadable response"
            raise ExternalApiError(msg) from exc

        logger.debug("Exa search %r -> %d results", query, len(results))
        return results

    async def search_crypto_project(self, project: str, num_results: int = 5) -> list[SearchResult]:
        """Research *project*; failures are logged and return no results."""
        query = build_project_query(project, ("details", "tokenomics", "technology"))
        try:
            return await self.search(query, num_results)
        except (NetworkError, ExternalApiError):
            logger.exception("Exa research failed for %s", project)
            return []
