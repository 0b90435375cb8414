"""Yahoo Finance quote provider: the secondary equity source."""
import asyncio
from datetime import datetime, timezone

import yfinance as yf

from market_chat.providers.core import round2
from market_chat.providers.stocks.stocks_provider_abc import StocksProviderABC
from market_chat.providers.stocks.yfinance.models import YFinanceSnapshot
from market_chat.schemas import Quote

# Well-known NSE blue chips that Yahoo only lists with an exchange suffix.
NSE_SYMBOLS = frozenset(
    {
        "RELIANCE",
        "TCS",
        "INFY",
        "HDFCBANK",
        "ICICIBANK",
        "SBIN",
        "ITC",
        "WIPRO",
        "BHARTIARTL",
        "HINDUNILVR",
        "KOTAKBANK",
        "AXISBANK",
        "TATAMOTORS",
        "MARUTI",
        "LT",
    }
)
NSE_SUFFIX = ".NS"


def yahoo_symbol(symbol: str) -> str:
    """Map a bare symbol to Yahoo's listing (``RELIANCE`` -> ``RELIANCE.NS``)."""
    if "." in symbol:
        return symbol
    if symbol in NSE_SYMBOLS:
        return symbol + NSE_SUFFIX
    return symbol


class YFinanceProvider(StocksProviderABC):
    """Equity quotes via the yfinance library.

    No API key required. yfinance is synchronous, so lookups run in a worker
    thread bounded by ``timeout``.
    """

    name = "yfinance"

    def __init__(self, timeout: float = 15.0) -> None:
        self._timeout = timeout

    def _extract_snapshot(self, ticker: yf.Ticker, symbol: str) -> YFinanceSnapshot:
        """Read price, previous close and volume; raises if price unavailable."""
        info = getattr(ticker, "fast_info", None)
        if info and (price := info.get("lastPrice") or info.get("regularMarketPrice")):
            return YFinanceSnapshot(
                price=float(price),
                previous_close=info.get("previousClose"),
                volume=info.get("lastVolume"),
            )
        full = ticker.info
        price = full.get("currentPrice") or full.get("regularMarketPrice")
        if price is None:
            raise ValueError(f"Stock '{symbol}' not found or has no price data")
        return YFinanceSnapshot(
            price=float(price),
            previous_close=full.get("previousClose") or full.get("regularMarketPreviousClose"),
            volume=full.get("volume"),
        )

    def _fetch_quote_sync(self, symbol: str) -> Quote:
        """Fetch a single quote synchronously (run in thread)."""
        ticker = yf.Ticker(yahoo_symbol(symbol))
        try:
            snap = self._extract_snapshot(ticker, symbol)
        except ValueError:
            raise
        except Exception as e:
            raise ValueError(f"Failed to fetch quote for '{symbol}': {e}") from e

        change = 0.0
        change_percent = 0.0
        if snap.previous_close:
            change = snap.price - snap.previous_close
            change_percent = change / snap.previous_close * 100
        return Quote(
            symbol=symbol,
            price=snap.price,
            change=round2(change),
            change_percent=round2(change_percent),
            volume=float(snap.volume or 0.0),
            last_updated_at=datetime.now(timezone.utc),
            provider=self.name,
        )

    async def get_quote(self, symbol: str) -> Quote:
        return await asyncio.wait_for(
            asyncio.to_thread(self._fetch_quote_sync, symbol), timeout=self._timeout
        )
