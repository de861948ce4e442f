"""Data models for users, conversation turns, knowledge and strategies."""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


def _decode_json(value: Any) -> Any:
    """SQLite rows carry JSON columns as text."""
    if isinstance(value, str):
        return json.loads(value)
    return value


class User(BaseModel):
    """A chat identity, keyed by a unique username."""

    id: int
    username: str
    wallet_address: str | None = None
    created_at: str
    updated_at: str


class ChatMessage(BaseModel):
    """A single persisted conversation turn."""

    id: int | None = None
    user_id: int
    role: Literal["user", "assistant"]
    content: str
    created_at: str


class KnowledgeEntry(BaseModel):
    """A stored piece of research or user-supplied knowledge."""

    id: int | None = None
    user_id: int
    source_id: str
    content: str
    tags: list[str] = Field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    @field_validator("tags", mode="before")
    @classmethod
    def decode_tags(cls, value: Any) -> Any:
        return _decode_json(value)


class StrategyRecord(BaseModel):
    """A saved investment strategy."""

    id: int | None = None
    user_id: int
    strategy_id: str
    name: str
    category: str
    description: str
    risk_level: str
    tags: list[str] = Field(default_factory=lambda: ["investment"])
    steps: list[str] = Field(default_factory=list)
    requirements: list[str] = Field(default_factory=list)
    expected_returns: dict[str, Any] = Field(
        default_factory=lambda: {"note": "Not specified"}
    )
    author: str = "User"
    version: str = "1.0"
    created_at: str = ""
    updated_at: str = ""

    @field_validator("tags", "steps", "requirements", "expected_returns", mode="before")
    @classmethod
    def decode_json_columns(cls, value: Any) -> Any:
        return _decode_json(value)
