"""Prompt assembly: persona, planning mode, history and retrieved knowledge."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from nova.errors import DatabaseError, NovaError
from nova.prices.coins import CRYPTO_PROJECTS, INVESTMENT_KEYWORDS
from nova.search.exa import NO_RESULTS, summarize

if TYPE_CHECKING:
    from nova.search.exa import ExaClient
    from nova.storage.models import ChatMessage, KnowledgeEntry
    from nova.storage.store import ChatStore

logger = logging.getLogger(__name__)

MAX_KNOWLEDGE_ENTRIES = 2

SYSTEM_PROMPT = (
    "You are Nova, a crypto investment advisor with expertise in blockchain, DeFi, "
    "NFTs, and crypto markets. You can research projects, analyze market trends, "
    "provide investment advice, and explain complex crypto concepts. When asked about "
    "specific projects, provide detailed information about their technology, "
    "tokenomics, team, recent developments, and investment potential. Include both "
    "strengths and risks in your analysis. If the user asks about prices, trading, or "
    "portfolio management, provide thoughtful advice while being clear about market "
    "uncertainties. Always be helpful, concise, and focused on providing value to the user."
)

PERSONA = (
    "You are Nova, a crypto investment advisor. "
    "Help the user with their investment decisions."
)

PLANNING_PERSONA = (
    "You are Nova, a crypto investment advisor in PLANNING MODE. Create a detailed "
    "investment plan or strategy based on the user's request."
)

PLANNING_STEPS = (
    "IMPORTANT: Before answering ANY question, you MUST first outline your approach "
    "as a numbered list of steps.\n"
    "For example:\n"
    "PLANNING STEPS:\n"
    "1. Research [specific topic] to understand current market conditions\n"
    "2. Analyze [specific factors] that might impact the investment\n"
    "3. Formulate a strategy based on [specific criteria]\n\n"
    "Only AFTER listing these planning steps should you provide your full response.\n"
)

PLAN_STRUCTURE = (
    "When in planning mode, structure your response as follows:\n"
    "1. OBJECTIVE: Clearly state the investment goal\n"
    "2. STRATEGY OVERVIEW: Provide a high-level summary of the recommended approach\n"
    "3. ASSET ALLOCATION: Suggest specific percentage allocations\n"
    "4. ENTRY STRATEGY: When and how to enter positions\n"
    "5. RISK MANAGEMENT: Stop-losses, position sizing, and risk mitigation\n"
    "6. EXIT STRATEGY: When and how to take profits or cut losses\n"
    "7. TIMELINE: Expected timeframe for the strategy\n"
    "8. MONITORING: Key indicators to watch\n"
)


def extract_project_name(message: str) -> str | None:
    """The known project mentioned earliest in *message*, if any."""
    text = message.lower()
    found: list[tuple[int, str]] = []
    for project in CRYPTO_PROJECTS:
        match = re.search(rf"\b{re.escape(project)}\b", text)
        if match:
            found.append((match.start(), project))
    if not found:
        return None
    return min(found)[1]


def extract_keywords(message: str) -> list[str]:
    """Investment vocabulary present in *message*, in vocabulary order.

    Keywords are matched as word prefixes so "investing" counts as "invest".
    """
    text = message.lower()
    return [kw for kw in INVESTMENT_KEYWORDS if re.search(rf"\b{re.escape(kw)}", text)]


def format_knowledge(entries: list[KnowledgeEntry]) -> str:
    """Render at most two entries as ``Knowledge N: ...`` blocks."""
    return "".join(
        f"Knowledge {i}: {entry.content}\n\n"
        for i, entry in enumerate(entries[:MAX_KNOWLEDGE_ENTRIES], 1)
    )


def format_history(messages: list[ChatMessage]) -> str:
    if not messages:
        return ""
    turns = "".join(f"{m.role.upper()}:\n{m.content}\n\n" for m in messages)
    return f"RECENT CONVERSATION HISTORY:\n{turns}"


def build_prompt(
    user_message: str,
    history: list[ChatMessage],
    knowledge: str = "",
    *,
    planning: bool = False,
) -> str:
    """Assemble the user prompt.

    Sections, in order: persona, planning directive (the 8-part structure in
    planning mode, plus the reasoning-steps instruction always), conversation
    history, retrieved context, and the user's query.
    """
    sections = [PLANNING_PERSONA if planning else PERSONA, PLANNING_STEPS]
    if planning:
        sections.append(PLAN_STRUCTURE)
    history_text = format_history(history)
    if history_text:
        sections.append(history_text.rstrip("\n") + "\n")
    sections.append(f"CONTEXT INFORMATION:\n{knowledge}")
    sections.append(f"USER QUERY: {user_message}")
    return "\n".join(sections)


@dataclass
class RetrievedContext:
    """Knowledge gathered for one turn."""

    project: str | None = None
    project_knowledge: str = ""
    keyword_knowledge: str = ""

    def render(self) -> str:
        parts = []
        if self.project and self.project_knowledge:
            parts.append(f"Research about {self.project}:\n\n{self.project_knowledge}")
        if self.keyword_knowledge:
            parts.append(f"Relevant knowledge:\n\n{self.keyword_knowledge}")
        return "".join(parts)


async def research_project(
    store: ChatStore, search: ExaClient, user_id: int, project: str
) -> str:
    """Search the web for *project* and cache the summary as knowledge.

    Returns the summary, or ``""`` when nothing useful was found. A failure
    to cache is logged and does not affect the returned summary.
    """
    results = await search.search_crypto_project(project)
    summary = summarize(results)
    if summary == NO_RESULTS:
        return ""

    source_id = f"{project.lower().replace(' ', '_')}_research_{int(datetime.now(UTC).timestamp())}"
    try:
        await store.create_knowledge(
            user_id, source_id, summary, [project.lower(), "research", "exa_api"]
        )
    except DatabaseError:
        logger.exception("Failed to cache research for %s", project)
    return summary


async def retrieve_context(
    store: ChatStore,
    user_id: int,
    message: str,
    *,
    search: ExaClient | None = None,
    skip_project: bool = False,
) -> RetrievedContext:
    """Collect stored knowledge relevant to *message*.

    Project knowledge comes from an explicit tag match on the first project
    named in the message; keyword knowledge from tag overlap with the
    investment vocabulary. When *search* is given and nothing is stored for
    the project, the project is researched and the result cached. Retrieval
    failures degrade to empty context.
    """
    context = RetrievedContext()

    project = None if skip_project else extract_project_name(message)
    if project:
        context.project = project
        try:
            entries = await store.get_knowledge_by_tag(user_id, project)
            context.project_knowledge = format_knowledge(entries)
            if not entries and search is not None:
                context.project_knowledge = await research_project(
                    store, search, user_id, project
                )
        except NovaError:
            logger.exception("Project knowledge lookup failed for %s", project)

    keywords = extract_keywords(message)
    if keywords:
        try:
            entries = await store.get_knowledge_by_tags(user_id, keywords)
            context.keyword_knowledge = format_knowledge(entries)
        except DatabaseError:
            logger.exception("Keyword knowledge lookup failed")

    return context


def is_planning_request(message: str) -> bool:
    """Planning mode: "plan" plus one of investment/strategy/portfolio."""
    text = message.lower()
    return "plan" in text and any(
        word in text for word in ("investment", "strategy", "portfolio")
    )
