"""Tests for prompt assembly and knowledge retrieval."""

from unittest.mock import AsyncMock, MagicMock

from nova.errors import DatabaseError
from nova.llm.prompt import (
    PLANNING_STEPS,
    build_prompt,
    extract_keywords,
    extract_project_name,
    format_history,
    format_knowledge,
    is_planning_request,
    retrieve_context,
)
from nova.search.exa import SearchResult
from nova.storage.models import ChatMessage, KnowledgeEntry
from nova.storage.store import ChatStore


def _entry(content: str, *tags: str) -> KnowledgeEntry:
    return KnowledgeEntry(user_id=1, source_id=content, content=content, tags=list(tags))


def _message(role: str, content: str) -> ChatMessage:
    return ChatMessage(user_id=1, role=role, content=content, created_at="2024-01-01T00:00:00")


class TestBuildPrompt:
    def test_section_order(self):
        history = [_message("user", "hi"), _message("assistant", "hello!")]
        prompt = build_prompt("Is ETH a buy?", history, "Knowledge 1: eth facts\n\n")

        positions = [
            prompt.index("You are Nova, a crypto investment advisor."),
            prompt.index("PLANNING STEPS:"),
            prompt.index("RECENT CONVERSATION HISTORY:"),
            prompt.index("CONTEXT INFORMATION:"),
            prompt.index("USER QUERY: Is ETH a buy?"),
        ]
        assert positions == sorted(positions)
        assert "USER:\nhi" in prompt
        assert "ASSISTANT:\nhello!" in prompt
        assert "Knowledge 1: eth facts" in prompt

    def test_reasoning_steps_always_required(self):
        prompt = build_prompt("hello", [])
        assert PLANNING_STEPS in prompt
        assert "PLANNING MODE" not in prompt
        assert "RECENT CONVERSATION HISTORY" not in prompt

    def test_planning_mode_structure(self):
        prompt = build_prompt("plan my portfolio", [], planning=True)
        assert "PLANNING MODE" in prompt
        for part in (
            "1. OBJECTIVE",
            "2. STRATEGY OVERVIEW",
            "3. ASSET ALLOCATION",
            "4. ENTRY STRATEGY",
            "5. RISK MANAGEMENT",
            "6. EXIT STRATEGY",
            "7. TIMELINE",
            "8. MONITORING",
        ):
            assert part in prompt
        assert prompt.index("8. MONITORING") < prompt.index("CONTEXT INFORMATION:")


class TestHelpers:
    def test_planning_detection(self):
        assert is_planning_request("Help me plan an investment")
        assert is_planning_request("PLAN my Portfolio")
        assert not is_planning_request("plan a trip")
        assert not is_planning_request("investment ideas")

    def test_project_name_earliest_mention(self):
        assert extract_project_name("Compare Solana with Ethereum") == "solana"
        assert extract_project_name("tell me about the graph") == "the graph"

    def test_project_name_needs_whole_word(self):
        assert extract_project_name("check my database") is None

    def test_keywords(self):
        assert extract_keywords("What's the risk of staking for yield?") == [
            "risk",
            "yield",
            "staking",
        ]
        assert extract_keywords("hello") == []

    def test_format_knowledge_caps_at_two(self):
        text = format_knowledge([_entry("a"), _entry("b"), _entry("c")])
        assert text == "Knowledge 1: a\n\nKnowledge 2: b\n\n"

    def test_format_history_empty(self):
        assert format_history([]) == ""


class TestRetrieveContext:
    async def test_project_and_keyword_knowledge(self, store: ChatStore) -> None:
        user = await store.create_user("alice")
        await store.create_knowledge(user.id, "sol1", "Solana uses proof of history", ["solana"])
        await store.create_knowledge(user.id, "stk1", "Staking locks tokens", ["staking"])

        context = await retrieve_context(store, user.id, "Is staking on Solana safe?")
        rendered = context.render()

        assert context.project == "solana"
        assert rendered.startswith("Research about solana:\n\nKnowledge 1: Solana uses proof of history")
        assert "Relevant knowledge:\n\nKnowledge 1: Staking locks tokens" in rendered

    async def test_nothing_stored(self, store: ChatStore) -> None:
        user = await store.create_user("bob")
        context = await retrieve_context(store, user.id, "Is staking on Solana safe?")
        assert context.render() == ""

    async def test_lookup_failures_degrade_to_empty(self) -> None:
        broken = MagicMock()
        broken.get_knowledge_by_tag = AsyncMock(side_effect=DatabaseError("locked"))
        broken.get_knowledge_by_tags = AsyncMock(side_effect=DatabaseError("locked"))

        context = await retrieve_context(broken, 1, "Is staking on Solana safe?")

        assert context.render() == ""

    async def test_skip_project(self, store: ChatStore) -> None:
        user = await store.create_user("carol")
        await store.create_knowledge(user.id, "sol1", "Solana facts", ["solana"])

        context = await retrieve_context(store, user.id, "save my solana strategy", skip_project=True)

        assert context.project is None
        assert "Solana facts" not in context.render()

    async def test_research_is_cached(self, store: ChatStore) -> None:
        user = await store.create_user("dana")
        search = MagicMock()
        search.search_crypto_project = AsyncMock(
            return_value=[SearchResult(url="https://x", content="Aave is a lending token protocol.")]
        )

        context = await retrieve_context(store, user.id, "what about aave?", search=search)

        assert "Project Insights:" in context.project_knowledge
        cached = await store.get_knowledge_by_tag(user.id, "aave")
        assert len(cached) == 1
        assert cached[0].tags == ["aave", "research", "exa_api"]
        assert cached[0].source_id.startswith("aave_research_")

    async def test_research_skipped_when_knowledge_exists(self, store: ChatStore) -> None:
        user = await store.create_user("erin")
        await store.create_knowledge(user.id, "aave1", "Aave notes", ["aave"])
        search = MagicMock()
        search.search_crypto_project = AsyncMock(return_value=[])

        await retrieve_context(store, user.id, "what about aave?", search=search)

        search.search_crypto_project.assert_not_awaited()

    async def test_research_cache_failure_still_returns_summary(self) -> None:
        broken = MagicMock()
        broken.get_knowledge_by_tag = AsyncMock(return_value=[])
        broken.create_knowledge = AsyncMock(side_effect=DatabaseError("read-only"))
        search = MagicMock()
        search.search_crypto_project = AsyncMock(
            return_value=[SearchResult(url="https://x", content="Aave token launch.")]
        )

        context = await retrieve_context(broken, 1, "aave", search=search)

        assert "Aave token launch" in context.project_knowledge
