"""Abstract base class for quote providers used by the resolver's fallback chain."""
import asyncio
import logging
from abc import ABC, abstractmethod

import httpx

from market_chat.schemas import Quote

logger = logging.getLogger(__name__)

# Failures a provider may raise for a single lookup. Anything else is a bug
# and propagates.
PROVIDER_EXCEPTIONS: tuple[type[Exception], ...] = (
    ValueError,
    KeyError,
    TypeError,
    TimeoutError,
    OSError,
    asyncio.TimeoutError,
    httpx.HTTPError,
)


class QuoteProviderABC(ABC):
    """One strategy in the quote fallback chain.

    Subclasses implement get_quote(), which raises on failure. The resolver
    only calls try_resolve(), which turns those failures into absence so the
    chain can advance.
    """

    name: str = "provider"

    @property
    def configured(self) -> bool:
        """False when the provider lacks credentials; the resolver then skips it."""
        return True

    def supports(self, symbol: str) -> bool:
        """Whether this provider should be asked about the symbol at all."""
        return True

    @abstractmethod
    async def get_quote(self, symbol: str) -> Quote:
        """Fetch the current quote for a symbol.

        Args:
            symbol: Normalized uppercase symbol (e.g. "AAPL", "BTC").

        Returns:
            A Quote snapshot.

        Raises:
            ValueError: The provider has no data for the symbol.
            httpx.HTTPError: Transport failure or non-success status.
        """

    async def try_resolve(self, symbol: str) -> Quote | None:
        """Fetch a quote, returning None instead of raising.

        Quotes with a non-positive price are rejected: upstreams report 0 for
        instruments they do not cover.
        """
        try:
            quote = await self.get_quote(symbol)
        except PROVIDER_EXCEPTIONS as exc:
            logger.warning("%s failed for %s: %s", self.name, symbol, exc)
            return None
        if quote.price <= 0:
            logger.warning(
                "%s returned non-positive price %s for %s", self.name, quote.price, symbol
            )
            return None
        return quote

    async def close(self) -> None:
        """Clean up resources (connections, clients).

        Override in subclasses if cleanup is needed.
        """

    async def __aenter__(self) -> "QuoteProviderABC":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        await self.close()
