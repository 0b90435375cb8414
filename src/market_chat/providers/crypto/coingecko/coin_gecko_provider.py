"""CoinGecko quote provider for cryptocurrencies."""
from datetime import datetime, timezone

import httpx

from market_chat.providers.core import (CRYPTO_IDS, QuoteProviderABC,
                                        crypto_base, is_crypto_symbol, round2)
from market_chat.providers.crypto.coingecko.models import \
    CoinGeckoSimplePriceParams
from market_chat.schemas import Quote


class CoinGeckoProvider(QuoteProviderABC):
    """Crypto quotes via the CoinGecko /simple/price endpoint.

    Symbols are mapped through CRYPTO_IDS (``BTC`` -> ``bitcoin``) and USDT
    pairs are reduced to their base asset. CoinGecko reports only the 24h
    percent change, so the absolute change is derived as price * pct / 100.
    """

    name = "coingecko"
    BASE_URL = "https://api.coingecko.com/api/v3"
    PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the CoinGecko provider.

        Args:
            api_key: CoinGecko Pro API key; switches to the Pro endpoint when set.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests).
        """
        self._api_key = api_key
        headers: dict[str, str] = {"Accept": "application/json"}
        if api_key:
            headers["x-cg-pro-api-key"] = api_key
        base = self.PRO_BASE_URL if api_key else self.BASE_URL
        self._client = httpx.AsyncClient(
            base_url=base, headers=headers, timeout=timeout, transport=transport
        )

    def supports(self, symbol: str) -> bool:
        return is_crypto_symbol(symbol)

    async def get_quote(self, symbol: str) -> Quote:
        """Fetch the current USD quote for a crypto symbol."""
        base = crypto_base(symbol)
        coin_id = CRYPTO_IDS.get(base)
        if coin_id is None:
            raise ValueError(f"Coin '{symbol}' not supported")

        params = CoinGeckoSimplePriceParams().model_dump() | {"ids": coin_id}
        response = await self._client.get("/simple/price", params=params)
        response.raise_for_status()
        row = response.json().get(coin_id)
        if not row or row.get("usd") is None:
            raise ValueError(f"Coin '{coin_id}' not found")

        price = float(row["usd"])
        pct = float(row.get("usd_24h_change") or 0.0)
        updated = row.get("last_updated_at")
        return Quote(
            symbol=base,
            price=price,
            change=round2(price * pct / 100),
            change_percent=round2(pct),
            volume=float(row.get("usd_24h_vol") or 0.0),
            last_updated_at=(
                datetime.fromtimestamp(updated, tz=timezone.utc)
                if updated
                else datetime.now(timezone.utc)
            ),
            provider=self.name,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
