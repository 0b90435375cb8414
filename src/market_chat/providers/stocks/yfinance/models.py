"""Models for the YFinance provider."""
from pydantic import BaseModel


class YFinanceSnapshot(BaseModel):
    """Fields pulled from a yfinance Ticker before building a Quote."""

    price: float
    previous_close: float | None = None
    volume: float | None = None
