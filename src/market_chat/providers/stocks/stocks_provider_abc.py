"""Abstract base class for equity quote providers."""
from market_chat.providers.core import QuoteProviderABC, is_crypto_symbol


class StocksProviderABC(QuoteProviderABC):
    """Base for equity providers.

    Crypto symbols are routed to crypto providers, so equity providers decline
    them instead of spending a round trip on a guaranteed miss.
    """

    def supports(self, symbol: str) -> bool:
        return not is_crypto_symbol(symbol)
