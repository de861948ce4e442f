"""Nova entry point: logging setup and the interactive chat loop."""

from __future__ import annotations

import argparse
import asyncio
import logging
import logging.handlers

from nova.config import settings
from nova.errors import (
    ConfigurationError,
    DatabaseError,
    ExternalApiError,
    NetworkError,
    NovaError,
    PriceError,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "nova.log"

BANNER = (
    "\n=== Nova - Your Crypto Investment Advisor ===\n"
    "Chat with Nova about crypto investments, market trends, and trading strategies.\n"
    "Nova can research projects in real-time and provide personalized investment advice.\n"
    "Type 'exit' or 'quit' to end the conversation.\n"
)
GREETING = (
    "Hi! I'm Nova, your crypto investment advisor. I can help you research projects, "
    "analyze market trends, and make informed investment decisions. "
    "What would you like to discuss today?"
)
FAREWELL = "Thanks for chatting! Feel free to come back anytime you need investment advice."
EXIT_WORDS = frozenset({"exit", "quit"})


def setup_logging() -> None:
    """Console logging at LOG_LEVEL plus a daily-rotated DEBUG file in LOG_DIR."""
    settings.log_dir.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler()
    console.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    file_handler = logging.handlers.TimedRotatingFileHandler(
        settings.log_dir / LOG_FILE, when="midnight", backupCount=14, encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)

    logging.basicConfig(
        format=LOG_FORMAT,
        level=logging.DEBUG,
        handlers=[console, file_handler],
        force=True,
    )
    # Keep transport chatter out of the debug log.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.INFO)
    logger.info("Logging initialized (console=%s, dir=%s)", settings.log_level, settings.log_dir)


def describe_error(exc: Exception) -> str:
    """User-facing apology for a turn that aborted with *exc*."""
    text = str(exc)
    if isinstance(exc, ConfigurationError):
        return (
            "Sorry, there's a configuration issue. Please check your .env file and "
            "ensure all required API keys are set correctly."
        )
    if isinstance(exc, PriceError):
        return (
            "Sorry, I couldn't fetch the cryptocurrency price data. The price API might "
            "be experiencing issues or the cryptocurrency symbol might not be supported."
        )
    if isinstance(exc, NetworkError):
        return (
            "Sorry, I'm having trouble connecting to my AI service. Please check your "
            "internet connection and try again."
        )
    if isinstance(exc, ExternalApiError):
        if "Authentication error" in text or "Invalid API key" in text:
            return (
                "Sorry, I'm having trouble with my API authentication. Please check that "
                "your Anthropic API key is valid in the .env file."
            )
        if "Rate limit" in text:
            return (
                "Sorry, I've reached my usage limit with the AI service. "
                "Please try again in a few minutes."
            )
        if "Server error" in text:
            return "Sorry, the AI service is currently experiencing issues. Please try again later."
        return (
            "Sorry, I encountered an error while processing your request. "
            "There might be an issue with the Anthropic API service."
        )
    if isinstance(exc, DatabaseError):
        return "Sorry, I couldn't access my conversation storage. Please try again."
    return "Sorry, I encountered an error while processing your request. Please try again."


async def chat_loop(username: str) -> None:
    from nova.chat.agent import InvestmentChatAgent

    agent = await InvestmentChatAgent.create(username)

    print(BANNER)
    print(f"Nova: {GREETING}")

    while True:
        try:
            line = await asyncio.to_thread(input, "\nYou: ")
        except EOFError:
            line = "exit"

        message = line.strip()
        if message.lower() in EXIT_WORDS:
            print(f"\nNova: {FAREWELL}")
            break
        if not message:
            continue

        print("\nNova is thinking...", end="", flush=True)
        try:
            response = await agent.process_message(message)
        except NovaError as exc:
            logger.error("Error processing message: %s", exc)
            response = describe_error(exc)
        print("\r", end="")
        print(f"\nNova: {response}")


def main() -> None:
    """Start an interactive Nova session."""
    parser = argparse.ArgumentParser(prog="nova", description="Chat with Nova.")
    parser.add_argument(
        "--user",
        default=settings.default_username,
        help="username whose conversation and strategies to use",
    )
    args = parser.parse_args()

    setup_logging()
    logger.info("Starting Nova for %s with model %s", args.user, settings.claude_model)
    try:
        asyncio.run(chat_loop(args.user))
    except KeyboardInterrupt:
        print(f"\nNova: {FAREWELL}")


if __name__ == "__main__":
    main()
