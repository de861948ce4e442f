"""InvestmentChatAgent: one conversation turn from raw text to persisted reply."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from nova.chat import responses
from nova.chat.dates import days_ago, normalize_date
from nova.chat.extract import STRATEGY_SCHEMA_HELP, StrategyDraft, extract_strategy
from nova.chat.router import (
    GeneralChat,
    GeneralHistoricalQuery,
    HistoricalPriceQuery,
    Intent,
    PriceQuery,
    StrategyCreation,
    classify,
    is_strategy_request,
)
from nova.config import settings
from nova.errors import (
    InvalidInputError,
    NovaError,
    PriceError,
    PriceNotFoundError,
    RateLimitExceededError,
)
from nova.llm.client import complete_text
from nova.llm.prompt import SYSTEM_PROMPT, build_prompt, is_planning_request, retrieve_context
from nova.prices.coingecko import CoinGeckoClient
from nova.search.exa import ExaClient, summarize
from nova.storage.models import ChatMessage, StrategyRecord, User
from nova.storage.store import ChatStore

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

logger = logging.getLogger(__name__)

HISTORY_FALLBACK_DAYS = 30


async def first_answer(tiers: Sequence[Callable[[], Awaitable[str | None]]]) -> str | None:
    """Run *tiers* in order and return the first non-None answer."""
    for tier in tiers:
        answer = await tier()
        if answer is not None:
            return answer
    return None


def make_strategy_id(name: str, username: str, timestamp: int | None = None) -> str:
    """``<name lowercased, spaces→_>_<username lowercased>_<unix timestamp>``"""
    ts = int(time.time()) if timestamp is None else timestamp
    return f"{name.lower().replace(' ', '_')}_{username.lower()}_{ts}"


class InvestmentChatAgent:
    """Routes each message to a price lookup, a strategy save, or the LLM.

    Build one per username with :meth:`create`. The user's message is
    persisted before anything else happens and the reply (including
    apologies) is persisted before it is returned. Exceptions that abort a
    turn propagate to the caller and leave no assistant turn behind.
    """

    def __init__(
        self,
        user: User,
        store: ChatStore,
        prices: CoinGeckoClient,
        search: ExaClient,
    ) -> None:
        self.user = user
        self._store = store
        self._prices = prices
        self._search = search

    @classmethod
    async def create(
        cls,
        username: str | None = None,
        *,
        store: ChatStore | None = None,
        prices: CoinGeckoClient | None = None,
        search: ExaClient | None = None,
    ) -> InvestmentChatAgent:
        """Get or create *username* and wire the default collaborators."""
        store = store or ChatStore.get()
        user = await store.get_or_create_user(username or settings.default_username)
        logger.info("Chat agent ready for %s (id=%s)", user.username, user.id)
        return cls(user, store, prices or CoinGeckoClient(), search or ExaClient())

    # -- Turn ------------------------------------------------------------------

    async def process_message(self, message: str) -> str:
        """Answer *message* and persist both sides of the turn."""
        saved = await self._store.save_message(self.user.id, "user", message)

        intent = classify(message)
        logger.info("Message classified as %s", type(intent).__name__)
        response = await self._dispatch(intent, message, saved)

        await self._store.save_message(self.user.id, "assistant", response)
        return response

    async def _dispatch(self, intent: Intent, message: str, saved: ChatMessage) -> str:
        if isinstance(intent, HistoricalPriceQuery):
            return await self._historical_price(intent)
        if isinstance(intent, GeneralHistoricalQuery):
            return await self._month_ago_price(intent)
        if isinstance(intent, PriceQuery):
            return await self._current_price(intent)
        if isinstance(intent, StrategyCreation):
            return await self._create_strategy(message)
        if isinstance(intent, GeneralChat):
            return await self._chat(message, saved)
        msg = f"Unhandled intent: {intent!r}"
        raise TypeError(msg)

    # -- Prices ----------------------------------------------------------------

    async def _search_fallback(self, query: str, *, historical: bool) -> str | None:
        try:
            results = await self._search.search(query, 3)
        except NovaError:
            logger.exception("Search fallback failed for %r", query)
            return None
        if not results:
            return None
        return responses.research_answer(summarize(results), historical=historical)

    async def _current_usd(self, coin_id: str) -> float | None:
        """Current price for the change line of historical answers; best effort."""
        try:
            return (await self._prices.current_price(coin_id)).usd_price
        except PriceError as exc:
            logger.warning("No current price for %s: %s", coin_id, exc)
            return None

    async def _current_price(self, intent: PriceQuery) -> str:
        alias = intent.alias or intent.coin
        failure: PriceError | None = None

        async def primary() -> str | None:
            nonlocal failure
            try:
                quote = await self._prices.current_price(intent.coin)
            except PriceError as exc:
                logger.warning("Price lookup failed for %s: %s", intent.coin, exc)
                failure = exc
                return None
            if intent.wants_entry_points:
                return responses.entry_points_text(alias, intent.coin, quote.usd_price)
            return responses.current_price_text(alias, intent.coin, quote.usd_price)

        async def rate_limited() -> str | None:
            if isinstance(failure, RateLimitExceededError):
                return responses.rate_limited_text()
            return None

        async def research() -> str | None:
            return await self._search_fallback(
                f"current price of {alias} cryptocurrency", historical=False
            )

        async def apology() -> str:
            if isinstance(failure, PriceNotFoundError):
                return responses.price_not_found_text(alias)
            return responses.price_unavailable_text(alias)

        return await first_answer([primary, rate_limited, research, apology])

    async def _resolve_historical(
        self, coin_id: str, alias: str, date: str, render: Callable[[float, float | None], str]
    ) -> str:
        failure: PriceError | None = None

        async def primary() -> str | None:
            nonlocal failure
            try:
                quote = await self._prices.historical_price(coin_id, date)
            except PriceError as exc:
                logger.warning("Historical lookup failed for %s on %s: %s", coin_id, date, exc)
                failure = exc
                return None
            return render(quote.usd_price, await self._current_usd(coin_id))

        async def rate_limited() -> str | None:
            if isinstance(failure, RateLimitExceededError):
                return responses.rate_limited_text()
            return None

        async def research() -> str | None:
            return await self._search_fallback(
                f"historical price of {alias} cryptocurrency on {date}", historical=True
            )

        async def apology() -> str:
            return responses.historical_unavailable_text(alias, date)

        return await first_answer([primary, rate_limited, research, apology])

    async def _historical_price(self, intent: HistoricalPriceQuery) -> str:
        alias = intent.alias or intent.coin
        try:
            date = normalize_date(intent.date)
        except InvalidInputError as exc:
            logger.info("Rejected date %r: %s", intent.date, exc)
            return responses.invalid_date_text(str(exc))

        return await self._resolve_historical(
            intent.coin,
            alias,
            date,
            lambda then, now: responses.historical_price_text(alias, intent.coin, date, then, now),
        )

    async def _month_ago_price(self, intent: GeneralHistoricalQuery) -> str:
        alias = intent.alias or intent.coin
        date = days_ago(HISTORY_FALLBACK_DAYS)
        return await self._resolve_historical(
            intent.coin,
            alias,
            date,
            lambda then, now: responses.month_ago_text(alias, intent.coin, date, then, now),
        )

    # -- Strategies ------------------------------------------------------------

    async def _unique_strategy_id(self, draft: StrategyDraft) -> str:
        base = make_strategy_id(draft.name, self.user.username)
        candidate, suffix = base, 2
        while await self._store.strategy_exists(self.user.id, candidate):
            candidate = f"{base}_{suffix}"
            suffix += 1
        return candidate

    async def _create_strategy(self, message: str) -> str:
        draft = extract_strategy(message)
        if draft is None:
            return STRATEGY_SCHEMA_HELP

        record = StrategyRecord(
            user_id=self.user.id,
            strategy_id=await self._unique_strategy_id(draft),
            name=draft.name,
            category=draft.category,
            description=draft.description,
            risk_level=draft.risk_level,
            tags=draft.tags,
            steps=draft.steps,
            requirements=draft.requirements,
            expected_returns=draft.expected_returns,
            author=draft.author,
            version=draft.version,
        )
        await self._store.create_strategy(record)
        return responses.strategy_saved_text(draft.name)

    # -- General chat ----------------------------------------------------------

    async def _history(self, exclude_id: int | None) -> list[ChatMessage]:
        try:
            messages = await self._store.get_recent_messages(
                self.user.id, settings.conversation_history_limit + 1
            )
        except NovaError:
            logger.exception("Could not load conversation history")
            return []
        history = [m for m in messages if m.id != exclude_id]
        return history[-settings.conversation_history_limit:]

    async def _chat(self, message: str, saved: ChatMessage) -> str:
        history = await self._history(saved.id)
        context = await retrieve_context(
            self._store,
            self.user.id,
            message,
            search=self._search if settings.research_enabled else None,
            skip_project=is_strategy_request(message),
        )
        prompt = build_prompt(
            message, history, context.render(), planning=is_planning_request(message)
        )
        return await complete_text(prompt, system=SYSTEM_PROMPT)
