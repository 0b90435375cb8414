"""Shared utilities for quote providers."""

DECIMALS = 2

# Crypto symbols the service understands, mapped to CoinGecko coin IDs.
CRYPTO_IDS: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
    "DOGE": "dogecoin",
    "XRP": "ripple",
    "ADA": "cardano",
    "BNB": "binancecoin",
}

USDT_SUFFIX = "USDT"


def normalize_symbol(symbol: str) -> str:
    """Normalize a ticker symbol: trim, drop a leading '$', uppercase."""
    return symbol.strip().lstrip("$").upper()


def crypto_base(symbol: str) -> str:
    """Strip a USDT pair suffix (``BTCUSDT`` -> ``BTC``)."""
    sym = normalize_symbol(symbol)
    if sym.endswith(USDT_SUFFIX) and len(sym) > len(USDT_SUFFIX):
        return sym[: -len(USDT_SUFFIX)]
    return sym


def is_crypto_symbol(symbol: str) -> bool:
    """True for allow-listed crypto symbols and any USDT-quoted pair."""
    sym = normalize_symbol(symbol)
    return sym in CRYPTO_IDS or (
        sym.endswith(USDT_SUFFIX) and len(sym) > len(USDT_SUFFIX)
    )


def round2(x: float | None) -> float | None:
    """Round a value to 2 decimal places; preserve None."""
    if x is None:
        return None
    return round(float(x), DECIMALS)
