"""Heuristic detection of ticker symbols in free-text chat messages.

Pure functions, no I/O. English words that are also tickers ("ALL", "NOW")
will slip through or be dropped depending on the stop-word list; that is the
accepted precision/recall trade-off of scanning text without a symbol registry.
"""
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from market_chat.providers.core import normalize_symbol

# Bare all-caps words and $-prefixed tokens of 2-10 letters.
_TICKER_RE = re.compile(r"\$[A-Za-z]{2,10}\b|\b[A-Z]{2,10}\b")

DEFAULT_ALIASES: dict[str, str] = {
    "apple": "AAPL",
    "nvidia": "NVDA",
    "nvdia": "NVDA",
    "tesla": "TSLA",
    "microsoft": "MSFT",
    "google": "GOOGL",
    "alphabet": "GOOGL",
    "amazon": "AMZN",
    "meta": "META",
    "netflix": "NFLX",
    "bitcoin": "BTC",
    "ethereum": "ETH",
    "solana": "SOL",
    "dogecoin": "DOGE",
    "cardano": "ADA",
    "ripple": "XRP",
}

DEFAULT_CRYPTO_KEYWORDS: tuple[str, ...] = (
    "bitcoin",
    "btc",
    "ethereum",
    "eth",
    "solana",
    "sol",
    "doge",
    "crypto",
    "xrp",
    "cardano",
)

STOP_WORDS = frozenset(
    {
        "ABOUT", "ALL", "AM", "AN", "AND", "ANY", "ARE", "AS", "AT", "BE",
        "BUT", "BUY", "BY", "CAN", "DO", "FOR", "HAD", "HAS", "HI", "HOLD",
        "HOW", "IF", "IN", "IS", "IT", "ME", "MY", "NO", "NOT", "OF", "OK",
        "ON", "OR", "PM", "SELL", "SO", "THAT", "THE", "THIS", "TO", "UP",
        "US", "WAS", "WE", "WHAT", "WHEN", "WHERE", "WHO", "WHY", "WILL",
        "WITH", "YOU",
        # Finance acronyms that are not instruments.
        "AI", "CEO", "CFO", "CPI", "ETF", "EUR", "FED", "GDP", "INR", "IPO",
        "NEWS", "USA", "USD",
    }
)

# Keyword -> crypto symbol, checked in order when choosing a crypto-mode target.
_CRYPTO_TARGETS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\b(btc|bitcoin)\b", re.IGNORECASE), "BTC"),
    (re.compile(r"\b(eth|ethereum)\b", re.IGNORECASE), "ETH"),
    (re.compile(r"\b(sol|solana)\b", re.IGNORECASE), "SOL"),
    (re.compile(r"\b(doge|dogecoin)\b", re.IGNORECASE), "DOGE"),
)
DEFAULT_CRYPTO_SYMBOL = "BTC"


@dataclass(frozen=True)
class TickerExtraction:
    """Detected symbols in first-occurrence order, plus the crypto signal."""

    symbols: tuple[str, ...]
    is_crypto: bool

    def __bool__(self) -> bool:
        return bool(self.symbols) or self.is_crypto


def extract_tickers(
    text: str,
    aliases: Mapping[str, str] = DEFAULT_ALIASES,
    crypto_keywords: Iterable[str] = DEFAULT_CRYPTO_KEYWORDS,
) -> TickerExtraction:
    """Detect instrument symbols mentioned in ``text``.

    Combines a regex scan (all-caps words, ``$`` tokens) with a
    case-insensitive substring match against company-name aliases. Output is
    de-duplicated and ordered by where each symbol first appears.

    Args:
        text: Raw message.
        aliases: Lowercase company name -> symbol.
        crypto_keywords: Lowercase substrings that make a message crypto-flavored.

    Returns:
        TickerExtraction with uppercase symbols and the crypto flag.
    """
    lowered = text.lower()
    alias_words = {name.upper() for name in aliases}
    found: list[tuple[int, str]] = []

    for match in _TICKER_RE.finditer(text):
        symbol = normalize_symbol(match.group())
        if symbol in STOP_WORDS or symbol in alias_words:
            continue
        found.append((match.start(), symbol))

    for name, symbol in aliases.items():
        pos = lowered.find(name.lower())
        if pos >= 0:
            found.append((pos, normalize_symbol(symbol)))

    found.sort(key=lambda item: item[0])
    symbols = tuple(dict.fromkeys(symbol for _, symbol in found))
    is_crypto = any(keyword in lowered for keyword in crypto_keywords)
    return TickerExtraction(symbols=symbols, is_crypto=is_crypto)


def pick_crypto_symbol(
    text: str,
    symbols: Iterable[str] = (),
    default: str = DEFAULT_CRYPTO_SYMBOL,
) -> str:
    """Choose the one coin to price in crypto mode."""
    for pattern, symbol in _CRYPTO_TARGETS:
        if pattern.search(text):
            return symbol
    return next(iter(symbols), default)
