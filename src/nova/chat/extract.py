"""Labeled-field extraction from free text (used for strategy creation).

Every helper returns ``None`` when the field is absent or unreadable; the
caller decides whether absence matters.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field

_NUMBERED_ITEM = re.compile(r"^[ \t]*\d+\.[ \t]*(\S[^\n]*)$", re.MULTILINE)


def _label_pattern(label: str) -> str:
    return re.escape(label.strip())


def extract_field(text: str, label: str) -> str | None:
    """Return the rest of the line after the first occurrence of *label*.

    Matching is case-insensitive. ``extract_field("Name: DCA", "name:")``
    returns ``"DCA"``.
    """
    match = re.search(
        rf"{_label_pattern(label)}[ \t]*([^\n]*\S)", text, re.IGNORECASE
    )
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


def _numbered_block(text: str, label: str) -> list[str] | None:
    """Items of a ``1. foo`` block starting on the line after *label*."""
    match = re.search(
        rf"{_label_pattern(label)}[^\n]*\n((?:[ \t]*\d+\.[ \t]*[^\n]+(?:\n|$))+)",
        text,
        re.IGNORECASE,
    )
    if not match:
        return None
    items = [item.strip() for item in _NUMBERED_ITEM.findall(match.group(1))]
    return [item for item in items if item] or None


def extract_list_field(text: str, label: str) -> list[str] | None:
    """Extract a list: comma-separated, else a numbered block, else one item."""
    value = extract_field(text, label)

    if value and "," in value:
        items = [item.strip() for item in value.split(",")]
        items = [item for item in items if item]
        if items:
            return items

    block = _numbered_block(text, label)
    if block:
        return block

    if value:
        return [value]
    return None


def _strip_quotes(value: str) -> str:
    return value.strip().strip("'\"").strip()


def extract_json_field(text: str, label: str) -> str | None:
    """Extract a JSON object as a string.

    Brace-wrapped values are returned verbatim. Otherwise ``key: value``
    pairs separated by commas are collected into an object; failing that the
    raw value is wrapped as ``{"value": raw}``.
    """
    value = extract_field(text, label)
    if value is None:
        return None

    if value.startswith("{") and value.endswith("}"):
        return value

    pairs: dict[str, str] = {}
    for chunk in value.split(","):
        key, sep, val = chunk.partition(":")
        key, val = _strip_quotes(key), _strip_quotes(val)
        if sep and key and val:
            pairs[key] = val

    if pairs:
        return json.dumps(pairs)
    return json.dumps({"value": value})


def parse_json_object(raw: str | None) -> dict:
    """Decode an extracted JSON field, defaulting to ``{"note": "Not specified"}``."""
    if raw:
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError:
            decoded = None
        if isinstance(decoded, dict):
            return decoded
    return {"note": "Not specified"}


STRATEGY_SCHEMA_HELP = (
    "To add a strategy, please provide at least the following information:\n\n"
    "Name: [strategy name]\n"
    "Category: [category]\n"
    "Description: [description]\n"
    "Risk Level: [low/medium/high]\n\n"
    "Optional fields:\n"
    "Tags: [comma-separated tags]\n"
    "Steps: [numbered steps]\n"
    "Requirements: [numbered requirements]\n"
    "Expected Returns: [JSON object with timeframes]\n"
    "Author: [author name]\n"
    "Version: [version number]"
)


@dataclass
class StrategyDraft:
    """Fields pulled out of a strategy-creation message."""

    name: str
    category: str
    description: str
    risk_level: str
    tags: list[str] = field(default_factory=lambda: ["investment"])
    steps: list[str] = field(default_factory=list)
    requirements: list[str] = field(default_factory=list)
    expected_returns: dict = field(default_factory=lambda: {"note": "Not specified"})
    author: str = "User"
    version: str = "1.0"


def extract_strategy(text: str) -> StrategyDraft | None:
    """Build a :class:`StrategyDraft`, or ``None`` if a required field is missing."""
    name = extract_field(text, "name:")
    category = extract_field(text, "category:")
    description = extract_field(text, "description:")
    risk_level = extract_field(text, "risk level:")
    if not (name and category and description and risk_level):
        return None

    return StrategyDraft(
        name=name,
        category=category,
        description=description,
        risk_level=risk_level,
        tags=extract_list_field(text, "tags:") or ["investment"],
        steps=extract_list_field(text, "steps:") or [],
        requirements=extract_list_field(text, "requirements:") or [],
        expected_returns=parse_json_object(extract_json_field(text, "expected returns:")),
        author=extract_field(text, "author:") or "User",
        version=extract_field(text, "version:") or "1.0",
    )
