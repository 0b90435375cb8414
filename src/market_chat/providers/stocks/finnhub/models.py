"""Models for the Finnhub provider."""
from pydantic import BaseModel, Field


class FinnhubQuote(BaseModel):
    """Body of GET /quote. Unknown symbols come back with all zeros."""

    current: float = Field(default=0.0, alias="c")
    change: float | None = Field(default=None, alias="d")
    change_percent: float | None = Field(default=None, alias="dp")
    timestamp: int | None = Field(default=None, alias="t")
