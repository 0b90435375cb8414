"""Quote and completion providers.

Quote providers implement QuoteProviderABC and are arranged by the resolver
into an ordered fallback chain:

- CoinGeckoProvider: crypto symbols (BTC, ETH, ..., and USDT pairs)
- FinnhubProvider: primary equity source
- YFinanceProvider: secondary equity source, no key required
- AlphaVantageProvider: last equity fallback, only when a key is configured

OpenRouterClient talks to the upstream language-completion API.

Example:
    async with FinnhubProvider(api_key) as provider:
        quote = await provider.try_resolve("AAPL")
"""
from market_chat.providers.completion import OpenRouterClient
from market_chat.providers.core import PROVIDER_EXCEPTIONS, QuoteProviderABC
from market_chat.providers.crypto import CoinGeckoProvider
from market_chat.providers.stocks import (AlphaVantageProvider,
                                          FinnhubProvider, StocksProviderABC,
                                          YFinanceProvider)

__all__ = [
    "PROVIDER_EXCEPTIONS",
    "AlphaVantageProvider",
    "CoinGeckoProvider",
    "FinnhubProvider",
    "OpenRouterClient",
    "QuoteProviderABC",
    "StocksProviderABC",
    "YFinanceProvider",
]
