"""Intent classification: an ordered rule list over the raw message text.

Rules are evaluated in priority order; the first rule whose pattern matches
*and* whose builder accepts the match decides the intent. Priority is part of
the contract:

1. labeled strategy form ("Name:" or "Category:" lines plus a save request)
2. dated historical price ("what was the price of btc on 01-12-2024")
3. undated historical price ("what is the historical price of eth")
4. explicit current price ("price of sol", "how much is ada?")
5. entry points ("entry points for solana")
6. generic "what is X" / bare coin name
7. strategy creation (verb + "strategy", or "please save this")
8. general chat
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from nova.prices.coins import COIN_IDS, INVESTMENT_KEYWORDS, to_coin_id


@dataclass(frozen=True)
class HistoricalPriceQuery:
    coin: str
    date: str
    alias: str = ""


@dataclass(frozen=True)
class GeneralHistoricalQuery:
    coin: str
    alias: str = ""


@dataclass(frozen=True)
class PriceQuery:
    coin: str
    wants_entry_points: bool = False
    alias: str = ""


@dataclass(frozen=True)
class StrategyCreation:
    pass


@dataclass(frozen=True)
class GeneralChat:
    pass


Intent = (
    HistoricalPriceQuery | GeneralHistoricalQuery | PriceQuery | StrategyCreation | GeneralChat
)

# Words that land in the coin slot of the looser patterns but are never coins.
_FILLER_WORDS = frozenset({
    "a", "an", "the", "it", "this", "that", "these", "those", "my", "your", "our",
    "its", "there", "here", "up", "going", "happening", "new", "best", "good",
    "better", "next", "current", "latest", "recent", "price", "value", "crypto",
    "cryptocurrency", "coin", "token", "blockchain", "you", "i", "me", "we",
})
_NON_COINS = _FILLER_WORDS | {kw for kw in INVESTMENT_KEYWORDS if " " not in kw}

_COIN = r"([a-z][a-z0-9-]*)"
_DATE = r"(\d{1,4}[-/.]\d{1,2}[-/.]\d{1,4}|\d{1,2}(?:st|nd|rd|th)? [a-z]{3,9},? \d{2,4})"
_TAIL = r"(?:\s+(?:right now|now|today|currently))?\s*[?.!]*\s*$"
_KNOWN = "|".join(sorted((re.escape(alias) for alias in COIN_IDS), key=len, reverse=True))

_ACTION_VERB = re.compile(r"\b(?:save|add|create|store)\b")
_STRATEGY_WORD = re.compile(r"\bstrateg(?:y|ies)\b")


def wants_entry_points(message: str) -> bool:
    """Whether a price question is really asking for entry levels."""
    text = message.lower()
    return (
        "entry point" in text
        or "entering point" in text
        or ("entry" in text and "price" in text)
        or ("enter" in text and "price" in text)
        or ("buy" in text and "level" in text)
        or ("when" in text and "buy" in text)
        or ("good" in text and "entry" in text)
    )


def is_strategy_request(message: str) -> bool:
    text = message.lower()
    if "please save this" in text:
        return True
    return bool(_ACTION_VERB.search(text) and _STRATEGY_WORD.search(text))


def _first_group(match: re.Match[str]) -> str | None:
    return next((g for g in match.groups() if g), None)


def _coin_or_none(token: str | None) -> str | None:
    if not token:
        return None
    token = token.lower()
    if token in _NON_COINS:
        return None
    return token


@dataclass(frozen=True)
class Rule:
    """One entry of the prioritized rule list."""

    name: str
    pattern: re.Pattern[str]
    build: Callable[[re.Match[str], str], Intent | None]


def _dated_historical(match: re.Match[str], message: str) -> Intent | None:
    alias = _coin_or_none(match.group(1))
    if alias is None:
        return None
    return HistoricalPriceQuery(coin=to_coin_id(alias), date=match.group(2), alias=alias)


def _undated_historical(match: re.Match[str], message: str) -> Intent | None:
    alias = _coin_or_none(match.group(1))
    if alias is None:
        return None
    return GeneralHistoricalQuery(coin=to_coin_id(alias), alias=alias)


def _price(match: re.Match[str], message: str) -> Intent | None:
    alias = _coin_or_none(_first_group(match))
    if alias is None:
        return None
    return PriceQuery(
        coin=to_coin_id(alias),
        wants_entry_points=wants_entry_points(message),
        alias=alias,
    )


def _entry_points(match: re.Match[str], message: str) -> Intent | None:
    alias = _coin_or_none(_first_group(match))
    if alias is None:
        return None
    return PriceQuery(coin=to_coin_id(alias), wants_entry_points=True, alias=alias)


def _strategy(match: re.Match[str], message: str) -> Intent | None:
    return StrategyCreation() if is_strategy_request(message) else None


RULES: tuple[Rule, ...] = (
    Rule(
        "strategy_form",
        re.compile(r"^[ \t]*(?:name|category)[ \t]*:", re.MULTILINE),
        _strategy,
    ),
    Rule(
        "historical_dated",
        re.compile(
            r"(?:what was|historical|history|past|previous|what is the historical)"
            rf" (?:the )?(?:price|value) (?:of |for )?{_COIN} (?:on|at|in) {_DATE}"
        ),
        _dated_historical,
    ),
    Rule(
        "historical_general",
        re.compile(rf"(?:what is|what's)(?: the)? historical (?:price|value)(?: of| for)? {_COIN}"),
        _undated_historical,
    ),
    Rule(
        "current_price",
        re.compile(
            r"(?:what(?:'s| is)(?: the)? (?:current |latest |recent )?(?:price|value)"
            rf" (?:of |for )?|\bprice of ){_COIN}"
            rf"|\bhow much is {_COIN}{_TAIL}"
            rf"|\b({_KNOWN})(?:'s)? (?:current )?price\b"
        ),
        _price,
    ),
    Rule(
        "entry_points",
        re.compile(
            rf"(?:what (?:is|are)|price)(?: the)? (?:entry|entering) points?(?: for)? {_COIN}"
            rf"|(?:entry|entering) points?(?: for)? {_COIN}"
            rf"|(?:price|prices)(?: for| of)? {_COIN} (?:entry|entering)"
        ),
        _entry_points,
    ),
    Rule(
        "what_is",
        re.compile(
            rf"\bwhat(?:'s| is)(?: the)? {_COIN}(?: (?:current )?price)?{_TAIL}"
            rf"|^\s*({_KNOWN})(?: (?:current )?price)?\s*\??\s*$"
        ),
        _price,
    ),
    Rule("strategy_creation", re.compile(r"\A"), _strategy),
)


def classify(message: str) -> Intent:
    """Classify *message* into exactly one intent. Pure function."""
    text = message.lower()
    for rule in RULES:
        for match in rule.pattern.finditer(text):
            intent = rule.build(match, message)
            if intent is not None:
                return intent
    return GeneralChat()
