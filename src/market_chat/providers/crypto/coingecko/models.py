"""Models for the CoinGecko provider (API params)."""
from pydantic import BaseModel


class CoinGeckoSimplePriceParams(BaseModel):
    """Params for /simple/price. Merge with 'ids' at call site."""

    vs_currencies: str = "usd"
    include_24hr_vol: str = "true"
    include_24hr_change: str = "true"
    include_last_updated_at: str = "true"
