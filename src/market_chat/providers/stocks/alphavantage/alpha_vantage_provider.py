"""Alpha Vantage quote provider: the last equity fallback, used only when configured."""
from datetime import datetime, timezone

import httpx

from market_chat.providers.core import round2
from market_chat.providers.stocks.alphavantage.models import \
    AlphaVantageGlobalQuote
from market_chat.providers.stocks.stocks_provider_abc import StocksProviderABC
from market_chat.schemas import Quote


def _to_float(raw: str | None) -> float:
    if not raw:
        return 0.0
    return float(raw.strip().rstrip("%"))


class AlphaVantageProvider(StocksProviderABC):
    """Equity quotes via Alpha Vantage function=GLOBAL_QUOTE.

    Alpha Vantage answers quota exhaustion with HTTP 200 and a "Note" or
    "Information" body instead of a quote; both count as failures.
    """

    name = "alphavantage"
    BASE_URL = "https://www.alphavantage.co"

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
            "/query",
            params={"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self._api_key},
        )
        response.raise_for_status()
        body = response.json()
        if "Note" in body or "Information" in body:
            raise ValueError(f"Alpha Vantage throttled: {body.get('Note') or body.get('Information')}")
        raw = body.get("Global Quote")
        if not raw:
            raise ValueError(f"Stock '{symbol}' not found")

        data = AlphaVantageGlobalQuote.model_validate(raw)
        return Quote(
            symbol=symbol,
            price=_to_float(data.price),
            change=round2(_to_float(data.change)),
            change_percent=round2(_to_float(data.change_percent)),
            volume=_to_float(data.volume),
            last_updated_at=datetime.now(timezone.utc),
            provider=self.name,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
