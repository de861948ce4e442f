"""Response text for price lookups, strategy saves and degraded answers."""

from __future__ import annotations

from dataclasses import dataclass

from nova.prices.coins import MAJOR_BANDS, MINOR_BANDS, display_name, format_usd, is_major


@dataclass(frozen=True)
class PriceLevels:
    """Support/resistance bands around a current price."""

    price: float
    strong_support: float
    support: float
    resistance: float
    strong_resistance: float

    @property
    def mid_support(self) -> float:
        return (self.support + self.strong_support) / 2

    @property
    def mid_resistance(self) -> float:
        return (self.resistance + self.strong_resistance) / 2


def price_levels(price: float, coin_id: str) -> PriceLevels:
    band, strong_band = MAJOR_BANDS if is_major(coin_id) else MINOR_BANDS
    return PriceLevels(
        price=price,
        strong_support=price * (1 - strong_band),
        support=price * (1 - band),
        resistance=price * (1 + band),
        strong_resistance=price * (1 + strong_band),
    )


def _stop_loss_advice(coin_id: str) -> str:
    if is_major(coin_id):
        return "Setting stop losses 5-8% below your entry price"
    return "Setting stop losses 10-15% below your entry price for this more volatile asset"


def current_price_text(alias: str, coin_id: str, price: float) -> str:
    name = display_name(alias)
    lv = price_levels(price, coin_id)

    def usd(value: float) -> str:
        return format_usd(value, coin_id)

    return (
        f"The current price of {name} is {usd(price)}\n\n"
        f"Key price levels for {name}:\n"
        f"- Strong support: {usd(lv.strong_support)}\n"
        f"- Support: {usd(lv.support)}\n"
        f"- Current price: {usd(price)}\n"
        f"- Resistance: {usd(lv.resistance)}\n"
        f"- Strong resistance: {usd(lv.strong_resistance)}\n\n"
        "Based on these levels, consider:\n"
        f"- Accumulating at support levels ({usd(lv.support)} - {usd(lv.strong_support)})\n"
        f"- Taking partial profits at resistance ({usd(lv.resistance)} - "
        f"{usd(lv.strong_resistance)})\n"
        f"- {_stop_loss_advice(coin_id)}"
    )


def entry_points_text(alias: str, coin_id: str, price: float) -> str:
    name = display_name(alias)
    lv = price_levels(price, coin_id)

    def usd(value: float) -> str:
        return format_usd(value, coin_id)

    if is_major(coin_id):
        context = (
            "MARKET CONTEXT:\n"
            f"- {name} is a major cryptocurrency with relatively lower volatility "
            "compared to smaller altcoins\n"
            "- Major cryptocurrencies tend to lead market trends and have higher liquidity\n"
            f"- Historical data shows {name} often finds support at previous resistance levels"
        )
    else:
        context = (
            "MARKET CONTEXT:\n"
            f"- {name} is a smaller cryptocurrency that may experience higher volatility "
            "than Bitcoin or Ethereum\n"
            "- Smaller cryptocurrencies often follow the general trend of Bitcoin but "
            "with amplified movements\n"
            "- Consider using smaller position sizes due to potentially higher risk"
        )

    return (
        f"ENTRY POINTS ANALYSIS FOR {name.upper()}:\n\n"
        f"Current Price: {usd(price)}\n\n"
        "SUPPORT LEVELS (Potential Entry Points):\n"
        f"- Strong support: {usd(lv.strong_support)} (Excellent entry, high probability of bounce)\n"
        f"- Mid support: {usd(lv.mid_support)} (Very good entry opportunity)\n"
        f"- Support: {usd(lv.support)} (Good entry, moderate probability of bounce)\n\n"
        "RESISTANCE LEVELS (Potential Exit Points):\n"
        f"- Resistance: {usd(lv.resistance)} (Consider taking partial profits - 25-33%)\n"
        f"- Mid resistance: {usd(lv.mid_resistance)} "
        "(Consider taking additional profits - 25-33%)\n"
        f"- Strong resistance: {usd(lv.strong_resistance)} "
        "(Consider taking significant profits - remaining position)\n\n"
        f"{context}\n\n"
        "ENTRY STRATEGY RECOMMENDATIONS:\n"
        "1. Dollar-Cost Average (DCA): Split your investment into 4-5 equal parts "
        "and buy at regular intervals\n"
        f"2. Scaled Entry: Allocate 20% at current price, 30% at {usd(lv.support)}, "
        f"and 50% at {usd(lv.strong_support)}\n"
        f"3. Limit Orders: Set buy orders at {usd(lv.support)}, {usd(lv.mid_support)}, "
        f"and {usd(lv.strong_support)} to automatically purchase on dips\n\n"
        "EXIT STRATEGY RECOMMENDATIONS:\n"
        f"1. Scaled Exit: Sell 25% at {usd(lv.resistance)}, 25% at {usd(lv.mid_resistance)}, "
        f"and remaining 50% at {usd(lv.strong_resistance)}\n"
        f"2. Trailing Stop: Set a trailing stop 7-10% below price after breaking "
        f"{usd(lv.resistance)}\n"
        f"3. Risk Management: {_stop_loss_advice(coin_id)}\n\n"
        "TIME HORIZON CONSIDERATIONS:\n"
        f"- Short-term traders: Focus on tighter ranges between {usd(lv.support)} and "
        f"{usd(lv.resistance)}\n"
        f"- Medium-term investors: Accumulate between {usd(lv.mid_support)} and "
        f"{usd(lv.strong_support)}, sell between {usd(lv.resistance)} and "
        f"{usd(lv.strong_resistance)}\n"
        f"- Long-term investors: Focus on accumulation at or below {usd(lv.support)}, "
        "consider holding through volatility\n\n"
        "Remember that these are technical levels only. Always consider fundamental "
        "factors, on-chain metrics, and overall market conditions before making "
        "investment decisions."
    )


def _price_change(then: float, now: float | None, coin_id: str) -> str:
    if not now or not then:
        return ""
    change = (now - then) / then * 100
    return (
        f"Since then, the price has changed by {change:.2f}% to the current price of "
        f"{format_usd(now, coin_id)}."
    )


_HISTORICAL_INSIGHTS = {
    "bitcoin": (
        "- Bitcoin has historically shown lower volatility than other cryptocurrencies\n"
        "- Major support levels tend to form at previous cycle lows\n"
        "- Consider dollar-cost averaging rather than lump-sum investments\n"
        "- Historical data suggests accumulating during 30%+ drawdowns from all-time highs"
    ),
    "ethereum": (
        "- Ethereum has shown moderate volatility compared to smaller cryptocurrencies\n"
        "- Major support levels tend to form at previous cycle lows\n"
        "- Consider dollar-cost averaging rather than lump-sum investments\n"
        "- Historical data suggests accumulating during 30%+ drawdowns from all-time highs"
    ),
}
_MINOR_INSIGHTS = (
    "- Smaller cryptocurrencies typically show higher volatility than Bitcoin or Ethereum\n"
    "- Consider smaller position sizes due to higher risk\n"
    "- Set wider stop losses (15-20%) to account for volatility\n"
    "- Look for accumulation opportunities during market-wide corrections"
)


def historical_price_text(
    alias: str, coin_id: str, date_text: str, then: float, now: float | None
) -> str:
    insights = _HISTORICAL_INSIGHTS.get(coin_id, _MINOR_INSIGHTS)
    return (
        f"The price of {display_name(alias)} on {date_text} was {format_usd(then, coin_id)}. "
        f"{_price_change(then, now, coin_id)}\n\n"
        "Based on historical data, here are some insights:\n"
        f"{insights}"
    )


def month_ago_text(
    alias: str, coin_id: str, date_text: str, then: float, now: float | None
) -> str:
    return (
        f"The price of {display_name(alias)} one month ago ({date_text}) was "
        f"{format_usd(then, coin_id)}. {_price_change(then, now, coin_id)}\n\n"
        "Historical price data can help identify trends and potential "
        "support/resistance levels."
    )


def research_answer(summary: str, *, historical: bool) -> str:
    if historical:
        note = (
            "Note: This information might not be from real-time price data. For more "
            "accurate historical data, I recommend checking specialized crypto data providers."
        )
    else:
        note = (
            "Note: This information might not be real-time. For specific trading levels "
            "and recommendations, I recommend checking specialized crypto data providers."
        )
    return f"Based on my research: {summary}\n\n{note}"


def rate_limited_text() -> str:
    return "The CoinGecko API rate limit has been reached. Please try again in a minute."


def price_not_found_text(alias: str) -> str:
    return (
        f"Could not find price information for {alias}. Please check that the "
        "cryptocurrency name or ticker is correct."
    )


def price_unavailable_text(alias: str) -> str:
    return (
        f"I couldn't find real-time price information for {alias}. Please check that "
        "the cryptocurrency name or ticker is correct and try again."
    )


def historical_unavailable_text(alias: str, date_text: str) -> str:
    return (
        f"Sorry, I couldn't fetch the historical price for {alias} on {date_text}. "
        "Make sure the date format is correct (DD-MM-YYYY) and that the "
        "cryptocurrency is supported."
    )


def invalid_date_text(detail: str) -> str:
    return f"Sorry, I couldn't understand that date. {detail}"


def strategy_saved_text(name: str) -> str:
    return (
        f"Strategy '{name}' has been successfully added to your investment strategies. "
        "You can refer to it in future conversations."
    )
