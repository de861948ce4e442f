"""Nova: a conversational crypto-investment assistant."""

__version__ = "0.1.0"
