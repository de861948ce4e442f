"""Coin identifiers, display names and volatility classes."""

# Ticker or common name → CoinGecko id. Anything not listed passes through.
COIN_IDS: dict[str, str] = {
    "btc": "bitcoin",
    "bitcoin": "bitcoin",
    "eth": "ethereum",
    "ethereum": "ethereum",
    "sol": "solana",
    "solana": "solana",
    "ada": "cardano",
    "cardano": "cardano",
    "dot": "polkadot",
    "polkadot": "polkadot",
    "doge": "dogecoin",
    "dogecoin": "dogecoin",
    "xrp": "ripple",
    "ripple": "ripple",
    "ltc": "litecoin",
    "litecoin": "litecoin",
    "link": "chainlink",
    "chainlink": "chainlink",
    "uni": "uniswap",
    "uniswap": "uniswap",
    "aave": "aave",
    "matic": "matic-network",
    "polygon": "matic-network",
    "avax": "avalanche-2",
    "avalanche": "avalanche-2",
    "aero": "aerodrome-finance",
    "aerodrome": "aerodrome-finance",
}

DISPLAY_NAMES: dict[str, str] = {
    "btc": "Bitcoin (BTC)",
    "bitcoin": "Bitcoin",
    "eth": "Ethereum (ETH)",
    "ethereum": "Ethereum",
    "sol": "Solana (SOL)",
    "solana": "Solana",
    "ada": "Cardano (ADA)",
    "cardano": "Cardano",
    "dot": "Polkadot (DOT)",
    "polkadot": "Polkadot",
    "doge": "Dogecoin (DOGE)",
    "dogecoin": "Dogecoin",
    "xrp": "XRP",
    "ripple": "XRP (Ripple)",
    "ltc": "Litecoin (LTC)",
    "litecoin": "Litecoin",
    "link": "Chainlink (LINK)",
    "chainlink": "Chainlink",
    "uni": "Uniswap (UNI)",
    "uniswap": "Uniswap",
    "aave": "Aave",
    "matic": "Polygon (MATIC)",
    "polygon": "Polygon",
    "avax": "Avalanche (AVAX)",
    "avalanche": "Avalanche",
    "aero": "Aerodrome (AERO)",
    "aerodrome": "Aerodrome",
}

MAJOR_COINS = frozenset({"bitcoin", "ethereum"})

# Fractional distance of (support/resistance, strong support/resistance)
# from the current price, by volatility class.
MAJOR_BANDS = (0.08, 0.15)
MINOR_BANDS = (0.15, 0.22)

# Projects recognised for knowledge lookups by tag.
CRYPTO_PROJECTS: tuple[str, ...] = (
    "bitcoin",
    "ethereum",
    "solana",
    "cardano",
    "polkadot",
    "avalanche",
    "chainlink",
    "polygon",
    "uniswap",
    "aave",
    "compound",
    "maker",
    "sushi",
    "curve",
    "yearn",
    "arbitrum",
    "optimism",
    "base",
    "bnb",
    "xrp",
    "dogecoin",
    "shiba inu",
    "litecoin",
    "cosmos",
    "near",
    "fantom",
    "tron",
    "filecoin",
    "the graph",
    "1inch",
    "pancakeswap",
    "gmx",
    "gains",
    "pendle",
    "aerodrome",
    "velodrome",
    "balancer",
)

# Investment vocabulary used for keyword knowledge lookups. None of these is
# ever treated as a coin name.
INVESTMENT_KEYWORDS: tuple[str, ...] = (
    "invest",
    "risk",
    "return",
    "strategy",
    "portfolio",
    "diversify",
    "allocation",
    "market",
    "bull",
    "bear",
    "trend",
    "analysis",
    "technical",
    "fundamental",
    "defi",
    "yield",
    "farming",
    "staking",
    "liquidity",
    "pool",
    "swap",
    "trade",
    "long",
    "short",
    "leverage",
    "margin",
    "volatility",
    "market cap",
    "volume",
    "tokenomics",
    "supply",
    "inflation",
    "team",
    "roadmap",
    "whitepaper",
)


def to_coin_id(name: str) -> str:
    """Map a ticker or common name to its CoinGecko id."""
    key = name.strip().lower()
    return COIN_IDS.get(key, key)


def display_name(name: str) -> str:
    """Human-facing name for a coin as the user typed it."""
    key = name.strip().lower()
    if key in DISPLAY_NAMES:
        return DISPLAY_NAMES[key]
    return key[:1].upper() + key[1:]


def is_major(coin_id: str) -> bool:
    return coin_id in MAJOR_COINS


def format_usd(value: float, coin_id: str) -> str:
    """Render a USD amount with 2 decimals for major coins, 4 otherwise."""
    if is_major(coin_id):
        return f"${value:,.2f}"
    return f"${value:,.4f}"
