from market_chat.providers.stocks.finnhub.finnhub_provider import \
    FinnhubProvider

__all__ = ["FinnhubProvider"]
