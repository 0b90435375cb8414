"""Tests for the quote providers. HTTP is served by httpx.MockTransport."""
import httpx
import pytest

from market_chat.providers import (AlphaVantageProvider, CoinGeckoProvider,
                                   FinnhubProvider, YFinanceProvider)
from market_chat.providers.core import crypto_base, is_crypto_symbol
from market_chat.providers.stocks.yfinance import y_finance_provider
from market_chat.providers.stocks.yfinance.y_finance_provider import \
    yahoo_symbol


def transport_for(handler):
    return httpx.MockTransport(handler)


# ── CoinGecko ────────────────────────────────────────────────────────────────

async def test_coingecko_maps_symbol_and_derives_change():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["ids"] = request.url.params["ids"]
        return httpx.Response(
            200,
            json={
                "bitcoin": {
                    "usd": 60000.0,
                    "usd_24h_change": 2.5,
                    "usd_24h_vol": 1234.0,
                    "last_updated_at": 1_700_000_000,
                }
            },
        )

    provider = CoinGeckoProvider(transport=transport_for(handler))
    quote = await provider.get_quote("BTC")
    await provider.close()

    assert seen["ids"] == "bitcoin"
    assert quote.symbol == "BTC"
    assert quote.price == 60000.0
    assert quote.change == 1500.0
    assert quote.change_percent == 2.5
    assert quote.volume == 1234.0


async def test_coingecko_accepts_usdt_pairs():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ethereum": {"usd": 3000.0}})

    provider = CoinGeckoProvider(transport=transport_for(handler))
    quote = await provider.try_resolve("ETHUSDT")
    await provider.close()

    assert quote.symbol == "ETH"
    assert quote.change == 0.0
    assert quote.volume == 0.0


async def test_coingecko_unknown_coin_is_absent():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={})

    provider = CoinGeckoProvider(transport=transport_for(handler))
    assert await provider.try_resolve("BTC") is None
    assert await provider.try_resolve("PEPEUSDT") is None
    await provider.close()


def test_coingecko_supports_only_crypto():
    provider = CoinGeckoProvider()
    assert provider.supports("BTC")
    assert provider.supports("SOLUSDT")
    assert not provider.supports("AAPL")


# ── Finnhub ──────────────────────────────────────────────────────────────────

async def test_finnhub_parses_quote():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/quote"
        assert request.url.params["symbol"] == "AAPL"
        assert request.url.params["token"] == "key"
        return httpx.Response(200, json={"c": 190.12, "d": 1.5, "dp": 0.7912, "t": 1_700_000_000})

    provider = FinnhubProvider("key", transport=transport_for(handler))
    quote = await provider.try_resolve("AAPL")
    await provider.close()

    assert quote.price == 190.12
    assert quote.change == 1.5
    assert quote.change_percent == 0.79
    assert quote.volume == 0.0
    assert quote.provider == "finnhub"


async def test_finnhub_zero_price_is_rejected():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"c": 0, "d": None, "dp": None, "t": 0})

    provider = FinnhubProvider("key", transport=transport_for(handler))
    assert await provider.try_resolve("NOPE") is None
    await provider.close()


async def test_finnhub_http_error_is_absent():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": "limit"})

    provider = FinnhubProvider("key", transport=transport_for(handler))
    assert await provider.try_resolve("AAPL") is None
    await provider.close()


def test_finnhub_requires_key():
    assert not FinnhubProvider(None).configured
    assert FinnhubProvider("key").configured
    assert not FinnhubProvider("key").supports("BTC")


# ── Alpha Vantage ────────────────────────────────────────────────────────────

async def test_alpha_vantage_parses_global_quote():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["function"] == "GLOBAL_QUOTE"
        return httpx.Response(
            200,
            json={
                "Global Quote": {
                    "01. symbol": "IBM",
                    "05. price": "182.4000",
                    "06. volume": "3500000",
                    "09. change": "-1.2000",
                    "10. change percent": "-0.6536%",
                }
            },
        )

    provider = AlphaVantageProvider("key", transport=transport_for(handler))
    quote = await provider.try_resolve("IBM")
    await provider.close()

    assert quote.price == 182.4
    assert quote.change == -1.2
    assert quote.change_percent == -0.65
    assert quote.volume == 3_500_000


@pytest.mark.parametrize(
    "body",
    [
        {"Global Quote": {}},
        {"Note": "Thank you for using Alpha Vantage! Our standard API rate limit is 25 requests per day."},
        {"Information": "premium endpoint"},
    ],
)
async def test_alpha_vantage_empty_or_throttled_is_absent(body):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    provider = AlphaVantageProvider("key", transport=transport_for(handler))
    assert await provider.try_resolve("IBM") is None
    await provider.close()


def test_alpha_vantage_unconfigured_without_key():
    assert not AlphaVantageProvider(None).configured


# ── Symbol helpers ───────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    ("symbol", "expected"),
    [("RELIANCE", "RELIANCE.NS"), ("TCS", "TCS.NS"), ("AAPL", "AAPL"), ("BRK.B", "BRK.B")],
)
def test_yahoo_symbol_suffix(symbol, expected):
    assert yahoo_symbol(symbol) == expected


@pytest.mark.parametrize(
    ("symbol", "crypto"),
    [("BTC", True), ("btc", True), ("DOGEUSDT", True), ("USDT", False), ("AAPL", False)],
)
def test_is_crypto_symbol(symbol, crypto):
    assert is_crypto_symbol(symbol) is crypto


def test_crypto_base_strips_usdt():
    assert crypto_base("btcusdt") == "BTC"
    assert crypto_base("ETH") == "ETH"


# ── yfinance ─────────────────────────────────────────────────────────────────

class FakeTicker:
    def __init__(self, fast_info=None, info=None):
        self.fast_info = fast_info or {}
        self.info = info or {}


async def test_yfinance_derives_change_from_previous_close(monkeypatch):
    requested = []

    def ticker(symbol):
        requested.append(symbol)
        return FakeTicker(
            fast_info={"lastPrice": 2900.0, "previousClose": 2800.0, "lastVolume": 1000}
        )

    monkeypatch.setattr(y_finance_provider.yf, "Ticker", ticker)
    quote = await YFinanceProvider().try_resolve("RELIANCE")

    assert requested == ["RELIANCE.NS"]
    assert quote.symbol == "RELIANCE"
    assert quote.change == 100.0
    assert quote.change_percent == 3.57
    assert quote.volume == 1000.0


async def test_yfinance_without_price_is_absent(monkeypatch):
    monkeypatch.setattr(y_finance_provider.yf, "Ticker", lambda symbol: FakeTicker())
    assert await YFinanceProvider().try_resolve("NOPE") is None
