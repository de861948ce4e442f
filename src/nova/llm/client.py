"""Async Claude client: single-shot text completion with classified errors."""

from __future__ import annotations

import logging
from typing import Any

import anthropic

from nova.config import settings
from nova.errors import ExternalApiError, NetworkError

logger = logging.getLogger(__name__)

MODEL_MAP: dict[str, str] = {
    "haiku": "claude-haiku-4-5-20251001",
    "sonnet": "claude-sonnet-4-5-20250929",
    "opus": "claude-opus-4-1-20250805",
}

_client: anthropic.AsyncAnthropic | None = None


def resolve_model(name_or_id: str) -> str:
    """Map a friendly name ("sonnet") to a model ID; pass full IDs through."""
    return MODEL_MAP.get(name_or_id, name_or_id)


def _get_client() -> anthropic.AsyncAnthropic:
    """Lazily initialize the Anthropic client."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = anthropic.AsyncAnthropic(
            api_key=settings.require("anthropic_api_key"),
            timeout=settings.llm_timeout_seconds,
        )
    return _client


def _reset_client() -> None:
    """Drop the cached client (for testing)."""
    global _client  # noqa: PLW0603
    _client = None


def _describe_status(exc: anthropic.APIStatusError) -> str:
    status = exc.status_code
    detail = exc.message
    if isinstance(exc, anthropic.AuthenticationError):
        return (
            "Authentication error (401): Invalid API key. "
            f"Please check your ANTHROPIC_API_KEY. {detail}"
        )
    if isinstance(exc, anthropic.PermissionDeniedError):
        return f"Authorization error (403): Your API key doesn't have permission. {detail}"
    if isinstance(exc, anthropic.RateLimitError):
        return f"Rate limit exceeded (429): Too many requests. Please try again later. {detail}"
    if status >= 500:
        return (
            f"Server error ({status}): Anthropic API is experiencing issues. "
            f"Please try again later. {detail}"
        )
    return f"API returned error status: {status} - {detail}"


async def complete_text(
    prompt: str,
    *,
    system: str | None = None,
    model: str | None = None,
    max_tokens: int | None = None,
) -> str:
    """Single-shot Claude call: one user message in, the text reply out.

    Raises:
        ConfigurationError: ANTHROPIC_API_KEY is empty.
        NetworkError: the request timed out or could not connect.
        ExternalApiError: the API answered with an error status or an
            empty completion.
    """
    client = _get_client()
    kwargs: dict[str, Any] = {
        "model": resolve_model(model or settings.claude_model),
        "max_tokens": max_tokens or settings.llm_max_tokens,
        "messages": [{"role": "user", "content": prompt}],
    }
    if system is not None:
        kwargs["system"] = system

    try:
        response = await client.messages.create(**kwargs)
    except anthropic.APITimeoutError as exc:
        msg = f"Anthropic request timed out after {settings.llm_timeout_seconds:g}s"
        raise NetworkError(msg) from exc
    except anthropic.APIConnectionError as exc:
        msg = f"Could not reach the Anthropic API: {exc}"
        raise NetworkError(msg) from exc
    except anthropic.APIStatusError as exc:
        msg = _describe_status(exc)
        logger.error("Anthropic API error: %s", msg)
        raise ExternalApiError(msg) from exc

    texts = [block.text for block in response.content if block.type == "text"]
    if not texts:
        msg = "Anthropic returned no text content"
        raise ExternalApiError(msg)

    text = "".join(texts)
    logger.debug("Received completion (%d chars)", len(text))
    return text
