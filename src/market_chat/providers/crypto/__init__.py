"""Crypto quote providers."""
from market_chat.providers.crypto.coingecko import CoinGeckoProvider

__all__ = ["CoinGeckoProvider"]
