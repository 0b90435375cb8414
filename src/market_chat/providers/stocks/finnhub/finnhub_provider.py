"""Finnhub quote provider: the primary equity source."""
from datetime import datetime, timezone

import httpx

from market_chat.providers.core import round2
from market_chat.providers.stocks.finnhub.models import FinnhubQuote
from market_chat.providers.stocks.stocks_provider_abc import StocksProviderABC
from market_chat.schemas import Quote


class FinnhubProvider(StocksProviderABC):
    """Equity quotes via Finnhub GET /quote.

    The free tier does not report volume, so volume is always 0. A zero price
    means Finnhub does not cover the symbol; try_resolve() rejects it.
    """

    name = "finnhub"
    BASE_URL = "https://finnhub.io/api/v1"

    def __init__(
        self,
        api_key: str | None,
        *,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL, timeout=timeout, transport=transport
        )

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def get_quote(self, symbol: str) -> Quote:
        response = await self._client.get(
            "/quote", params={"symbol": symbol, "token": self._api_key}
        )
        response.raise_for_status()
        data = FinnhubQuote.model_validate(response.json())
        return Quote(
            symbol=symbol,
            price=data.current,
            change=round2(data.change) or 0.0,
            change_percent=round2(data.change_percent) or 0.0,
            last_updated_at=(
                datetime.fromtimestamp(data.timestamp, tz=timezone.utc)
                if data.timestamp
                else datetime.now(timezone.utc)
            ),
            provider=self.name,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
