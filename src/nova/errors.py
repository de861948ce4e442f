"""Error taxonomy shared by the chat core and its collaborators."""


class NovaError(Exception):
    """Base class for every error raised by Nova."""


class ConfigurationError(NovaError):
    """A required setting is missing or empty."""


class InvalidInputError(NovaError):
    """User-supplied text (a date, a field) could not be parsed."""


class DatabaseError(NovaError):
    """The persistence store failed to read or write."""


class ExternalApiError(NovaError):
    """The language model or search service returned an error."""


class NetworkError(NovaError):
    """A transport failure or timeout talking to an external service."""


class PriceError(NovaError):
    """Base class for price-source failures."""


class RateLimitExceededError(PriceError):
    """The price source answered 429."""

    def __init__(self) -> None:
        super().__init__("CoinGecko API rate limit exceeded")


class PriceNotFoundError(PriceError):
    """A well-formed response did not contain the requested coin or currency."""

    def __init__(self, coin: str) -> None:
        self.coin = coin
        super().__init__(f"Price not found for {coin}")


class InvalidResponseError(PriceError):
    """The price source returned a non-success status or an unreadable body."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid API response: {detail}")


class PriceNetworkError(PriceError, NetworkError):
    """Transport failure or timeout talking to the price source."""
