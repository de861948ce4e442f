"""Tests for complete_text() and Anthropic error classification."""

from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import pytest

from nova.errors import ConfigurationError, ExternalApiError, NetworkError
from nova.llm.client import MODEL_MAP, complete_text, resolve_model

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def _status_error(cls: type[anthropic.APIStatusError], status: int) -> anthropic.APIStatusError:
    response = httpx.Response(status, request=_REQUEST, json={"error": {"message": "nope"}})
    return cls("nope", response=response, body={"error": {"message": "nope"}})


def _mock_client(**create_kwargs) -> MagicMock:
    mock_client = MagicMock()
    mock_client.messages.create = AsyncMock(**create_kwargs)
    return mock_client


def _text_response(*texts: str) -> MagicMock:
    response = MagicMock()
    response.content = [MagicMock(type="text", text=t) for t in texts]
    return response


async def test_complete_text_basic() -> None:
    mock_client = _mock_client(return_value=_text_response("hello world"))

    with patch("nova.llm.client._get_client", return_value=mock_client):
        result = await complete_text("hi", system="You are Nova.")

    assert result == "hello world"
    call_kwargs = mock_client.messages.create.call_args.kwargs
    assert call_kwargs["messages"] == [{"role": "user", "content": "hi"}]
    assert call_kwargs["system"] == "You are Nova."
    assert call_kwargs["model"] == MODEL_MAP["sonnet"]
    assert call_kwargs["max_tokens"] == 2048


async def test_complete_text_without_system() -> None:
    mock_client = _mock_client(return_value=_text_response("ok"))

    with patch("nova.llm.client._get_client", return_value=mock_client):
        await complete_text("hi", model="claude-custom-1", max_tokens=100)

    call_kwargs = mock_client.messages.create.call_args.kwargs
    assert "system" not in call_kwargs
    assert call_kwargs["model"] == "claude-custom-1"
    assert call_kwargs["max_tokens"] == 100


async def test_complete_text_joins_text_blocks() -> None:
    mock_client = _mock_client(return_value=_text_response("part one, ", "part two"))

    with patch("nova.llm.client._get_client", return_value=mock_client):
        assert await complete_text("hi") == "part one, part two"


async def test_empty_completion_is_an_error() -> None:
    mock_client = _mock_client(return_value=_text_response())

    with (
        patch("nova.llm.client._get_client", return_value=mock_client),
        pytest.raises(ExternalApiError, match="no text"),
    ):
        await complete_text("hi")


async def test_missing_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("nova.config.settings.anthropic_api_key", "")
    with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY"):
        await complete_text("hi")


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (_status_error(anthropic.AuthenticationError, 401), "Authentication error (401)"),
        (_status_error(anthropic.PermissionDeniedError, 403), "Authorization error (403)"),
        (_status_error(anthropic.RateLimitError, 429), "Rate limit exceeded (429)"),
        (_status_error(anthropic.InternalServerError, 500), "Server error (500)"),
        (_status_error(anthropic.APIStatusError, 503), "Server error (503)"),
        (_status_error(anthropic.BadRequestError, 400), "API returned error status: 400"),
    ],
)
async def test_status_errors_are_classified(error: Exception, expected: str) -> None:
    mock_client = _mock_client(side_effect=error)

    with patch("nova.llm.client._get_client", return_value=mock_client):
        with pytest.raises(ExternalApiError) as exc_info:
            await complete_text("hi")

    assert str(exc_info.value).startswith(expected)


async def test_timeout_is_network_error() -> None:
    mock_client = _mock_client(side_effect=anthropic.APITimeoutError(request=_REQUEST))

    with (
        patch("nova.llm.client._get_client", return_value=mock_client),
        pytest.raises(NetworkError, match="timed out"),
    ):
        await complete_text("hi")


async def test_connection_error_is_network_error() -> None:
    error = anthropic.APIConnectionError(request=_REQUEST)
    mock_client = _mock_client(side_effect=error)

    with (
        patch("nova.llm.client._get_client", return_value=mock_client),
        pytest.raises(NetworkError, match="Could not reach"),
    ):
        await complete_text("hi")


class TestResolveModel:
    def test_friendly_names(self):
        assert resolve_model("haiku") == MODEL_MAP["haiku"]
        assert resolve_model("opus") == MODEL_MAP["opus"]

    def test_full_id_passes_through(self):
        assert resolve_model("claude-3-opus-20240229") == "claude-3-opus-20240229"
