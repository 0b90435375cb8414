from market_chat.providers.stocks.alphavantage.alpha_vantage_provider import \
    AlphaVantageProvider

__all__ = ["AlphaVantageProvider"]
