"""Quote resolution: tiered cache first, then an ordered provider fallback chain."""
import asyncio
import logging
from collections.abc import Sequence

from market_chat.cache import TieredQuoteCache
from market_chat.providers.core import QuoteProviderABC, normalize_symbol
from market_chat.schemas import Quote

logger = logging.getLogger(__name__)

MAX_LIVE_SYMBOLS = 3


class QuoteResolver:
    """Resolves a symbol to a Quote, or None when nobody has one.

    The chain is plain data: providers are asked in list order, skipping those
    that are unconfigured or do not support the symbol (crypto vs equity), and
    the first positive-price quote is written through both cache tiers.
    Reordering or adding providers does not touch this class.
    """

    def __init__(
        self,
        cache: TieredQuoteCache,
        providers: Sequence[QuoteProviderABC],
    ) -> None:
        self._cache = cache
        self._providers = list(providers)

    async def resolve(self, symbol: str) -> Quote | None:
        """Resolve one symbol. Never raises for provider failures.

        Args:
            symbol: Raw or normalized ticker (e.g. "aapl", "$TSLA", "BTCUSDT").

        Returns:
            The cached or freshly fetched Quote, or None.
        """
        sym = normalize_symbol(symbol)
        if not sym:
            return None

        cached = await self._cache.get(sym)
        if cached is not None:
            return cached

        for provider in self._providers:
            if not provider.configured:
                logger.debug("Skipping unconfigured provider %s", provider.name)
                continue
            if not provider.supports(sym):
                continue
            quote = await provider.try_resolve(sym)
            if quote is None:
                continue
            await self._cache.set(sym, quote)
            logger.info("Resolved %s via %s: %s", sym, provider.name, quote.price)
            return quote

        logger.info("No provider could resolve %s", sym)
        return None

    async def resolve_many(
        self, symbols: Sequence[str], limit: int = MAX_LIVE_SYMBOLS
    ) -> dict[str, Quote]:
        """Resolve up to ``limit`` symbols concurrently, in detection order.

        Symbols past the limit are dropped. Symbols that resolve to nothing
        are missing from the result.
        """
        selected = list(dict.fromkeys(normalize_symbol(s) for s in symbols))[:limit]
        if len(symbols) > len(selected):
            logger.debug("Live quotes limited to %s of %s symbols", len(selected), len(symbols))
        results = await asyncio.gather(
            *(self.resolve(s) for s in selected),
            return_exceptions=True,
        )
        quotes: dict[str, Quote] = {}
        for sym, result in zip(selected, results):
            if isinstance(result, Exception):
                logger.error("Quote resolution for %s crashed: %r", sym, result)
            elif result is not None:
                quotes[sym] = result
        return quotes

    async def close(self) -> None:
        """Close every provider in the chain."""
        for provider in self._providers:
            try:
                await provider.close()
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Error closing provider %s: %s", provider.name, exc)
