"""Models for the Alpha Vantage provider."""
from pydantic import BaseModel, Field


class AlphaVantageGlobalQuote(BaseModel):
    """The "Global Quote" object of function=GLOBAL_QUOTE. All values are strings."""

    symbol: str = Field(alias="01. symbol")
    price: str = Field(alias="05. price")
    volume: str | None = Field(default=None, alias="06. volume")
    change: str | None = Field(default=None, alias="09. change")
    change_percent: str | None = Field(default=None, alias="10. change percent")
