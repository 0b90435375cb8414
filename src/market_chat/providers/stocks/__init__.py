"""Equity quote providers, in fallback order."""
from market_chat.providers.stocks.alphavantage import AlphaVantageProvider
from market_chat.providers.stocks.finnhub import FinnhubProvider
from market_chat.providers.stocks.stocks_provider_abc import StocksProviderABC
from market_chat.providers.stocks.yfinance import YFinanceProvider

__all__ = [
    "AlphaVantageProvider",
    "FinnhubProvider",
    "StocksProviderABC",
    "YFinanceProvider",
]
