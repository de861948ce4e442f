"""Shared test fixtures."""

from pathlib import Path

import pytest

from nova.llm import client as llm_client
from nova.storage.store import ChatStore


@pytest.fixture
def store(tmp_path: Path) -> ChatStore:
    """A ChatStore rooted in a temporary database, installed as the singleton."""
    ChatStore._reset()
    s = ChatStore(db_path=tmp_path / "nova.db")
    ChatStore._instance = s
    yield s
    ChatStore._reset()


@pytest.fixture(autouse=True)
def _fresh_llm_client() -> None:
    """Never share a cached Anthropic client between tests."""
    llm_client._reset_client()
    yield
    llm_client._reset_client()
