"""Tests for the Exa search client and result summaries."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from nova.errors import ConfigurationError, ExternalApiError, NetworkError
from nova.search.exa import (
    NO_RESULTS,
    ExaClient,
    SearchResult,
    build_project_query,
    extract_insights,
    summarize,
)

API_URL = "https://api.exa.test/search"


def _response(status_code: int = 200, **kwargs) -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        request=httpx.Request("POST", API_URL),
        **kwargs,
    )


def _mock_httpx_client(mock_client_cls: MagicMock, response: httpx.Response) -> AsyncMock:
    """Wire up an AsyncClient context-manager mock that returns *response*."""
    mock_client = AsyncMock()
    mock_client.post.return_value = response
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client_cls.return_value = mock_client
    return mock_client


@pytest.fixture
def exa(monkeypatch: pytest.MonkeyPatch) -> ExaClient:
    monkeypatch.setattr("nova.config.settings.exa_api_key", "exa-test-key")
    return ExaClient(api_url=API_URL, timeout=5.0)


# -- search ------------------------------------------------------------------------


class TestSearch:
    async def test_parses_results(self, exa: ExaClient) -> None:
        payload = {
            "results": [
                {
                    "id": "r1",
                    "url": "https://example.com/sol",
                    "title": "Solana overview",
                    "text": "Solana is a fast blockchain.",
                    "score": 0.92,
                    "publishedDate": "2024-05-01",
                    "author": "Ana",
                },
                {"url": "https://example.com/other"},
            ]
        }
        with patch("nova.search.exa.httpx.AsyncClient") as mock_cls:
            mock_client = _mock_httpx_client(mock_cls, _response(json=payload))
            results = await exa.search("cryptocurrency solana", num_results=2)

        assert [r.url for r in results] == ["https://example.com/sol", "https://example.com/other"]
        assert results[0].content == "Solana is a fast blockchain."
        assert results[0].published_date == "2024-05-01"
        assert results[1].content == ""

        args, kwargs = mock_client.post.call_args
        assert args[0] == API_URL
        assert kwargs["headers"]["x-api-key"] == "exa-test-key"
        assert kwargs["json"] == {
            "query": "cryptocurrency solana",
            "numResults": 2,
            "contents": {"text": True},
        }

    async def test_missing_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("nova.config.settings.exa_api_key", "")
        with pytest.raises(ConfigurationError, match="EXA_API_KEY"):
            await ExaClient(api_url=API_URL).search("anything")

    async def test_error_status(self, exa: ExaClient) -> None:
        with patch("nova.search.exa.httpx.AsyncClient") as mock_cls:
            _mock_httpx_client(mock_cls, _response(401, json={"error": "bad key"}))
            with pytest.raises(ExternalApiError, match="status 401"):
                await exa.search("btc")

    async def test_unreadable_body(self, exa: ExaClient) -> None:
        with patch("nova.search.exa.httpx.AsyncClient") as mock_cls:
            _mock_httpx_client(mock_cls, _response(text="not json"))
            with pytest.raises(ExternalApiError):
                await exa.search("btc")

    async def test_timeout(self, exa: ExaClient) -> None:
        with patch("nova.search.exa.httpx.AsyncClient") as mock_cls:
            mock_client = _mock_httpx_client(mock_cls, _response())
            mock_client.post.side_effect = httpx.ConnectTimeout("slow")
            with pytest.raises(NetworkError, match="timed out"):
                await exa.search("btc")

    async def test_project_research_swallows_errors(self, exa: ExaClient) -> None:
        with patch("nova.search.exa.httpx.AsyncClient") as mock_cls:
            _mock_httpx_client(mock_cls, _response(500, text="boom"))
            assert await exa.search_crypto_project("solana") == []

    async def test_project_research_query(self, exa: ExaClient) -> None:
        with patch("nova.search.exa.httpx.AsyncClient") as mock_cls:
            mock_client = _mock_httpx_client(mock_cls, _response(json={"results": []}))
            await exa.search_crypto_project("solana")

        payload = mock_client.post.call_args.kwargs["json"]
        assert payload["query"] == "cryptocurrency solana details tokenomics technology"
        assert payload["numResults"] == 5


# -- summaries ---------------------------------------------------------------------


def _result(content: str, url: str = "https://example.com") -> SearchResult:
    return SearchResult(url=url, content=content)


def test_build_project_query() -> None:
    assert build_project_query("aave") == "cryptocurrency aave"
    assert build_project_query("aave", ["team", "news"]) == "cryptocurrency aave team news"


def test_extract_insights_keeps_keyword_sentences() -> None:
    results = [
        _result("The token supply is capped. Weather was nice! Who is the founder?"),
        _result("It runs on its own blockchain."),
    ]
    assert extract_insights(results) == [
        "The token supply is capped",
        "Who is the founder",
        "It runs on its own blockchain",
    ]


def test_summarize_numbers_insights_up_to_ten() -> None:
    text = ". ".join(f"Partnership number {i} with a token" for i in range(15))
    summary = summarize([_result(text)])

    assert summary.startswith("Project Insights:\n\n1. ")
    assert "10. " in summary
    assert "11. " not in summary


def test_summarize_falls_back_to_top_result() -> None:
    summary = summarize([_result("x" * 800, url="https://top.example"), _result("other")])

    assert summary == f"Summary from https://top.example: {'x' * 500}\n"


def test_summarize_empty() -> None:
    assert summarize([]) == NO_RESULTS
