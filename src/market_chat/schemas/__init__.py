"""Pydantic schemas for the chat API and the stream protocol. Not persisted to DB."""
from datetime import datetime, timezone
from enum import Enum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base for wire models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatMode(str, Enum):
    """Conversation mode. MARKET and CRYPTO are the elevated modes."""

    GENERAL = "general"
    MARKET = "market"
    CRYPTO = "crypto"

    @property
    def elevated(self) -> bool:
        return self is not ChatMode.GENERAL


class Quote(CamelModel):
    """Point-in-time price snapshot for one symbol.

    Frozen: a newer snapshot replaces an older one, it is never edited.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    symbol: str
    price: float
    change: float = 0.0
    change_percent: float = 0.0
    volume: float = 0.0
    last_updated_at: datetime = Field(default_factory=utcnow)
    provider: str | None = None


class PriorTurn(BaseModel):
    """One earlier message of the conversation."""

    role: Literal["user", "assistant"]
    content: str


class ChatRequest(CamelModel):
    """Inbound chat request.

    ``message`` is optional at the schema level so a missing message is
    reported as a 400 ``{"error": ...}`` by the service instead of a 422.
    """

    message: str | None = None
    mode: ChatMode = ChatMode.GENERAL
    portfolio: list[str] = Field(default_factory=list)
    session_id: str = Field(default_factory=lambda: str(uuid4()))
    identity: str | None = None
    prior_turns: list[PriorTurn] = Field(default_factory=list)
    model: str | None = None


class StockImpact(CamelModel):
    symbol: str
    name: str
    price: float | None = None
    predicted_change: float = 0.0
    reasoning: str = ""
    confidence: int = 0


class SectorImpact(CamelModel):
    name: str
    impact: Literal["positive", "negative", "neutral"] = "neutral"
    score: int = 0
    reasoning: str = ""
    stocks: list[StockImpact] = Field(default_factory=list)


class AnalysisSummary(CamelModel):
    """Structured annotation shown as an analysis card next to the answer."""

    sentiment: Literal["bullish", "bearish", "neutral"] = "neutral"
    impact_score: int = 0
    confidence: int = 0
    symbol: str = ""
    symbols: list[str] = Field(default_factory=list)
    sectors: list[SectorImpact] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)
    prediction: str = ""


class MetadataEvent(BaseModel):
    """Leading stream event carrying the analysis summary."""

    type: Literal["metadata"] = "metadata"
    data: AnalysisSummary


class ContentEvent(BaseModel):
    """One text delta from the model."""

    type: Literal["content"] = "content"
    text: str


class ErrorEvent(BaseModel):
    """Final event of a stream whose upstream failed after relaying began."""

    type: Literal["error"] = "error"
    message: str


StreamEvent = MetadataEvent | ContentEvent | ErrorEvent


class ChatCompletion(CamelModel):
    """Response body of the non-streaming chat endpoint."""

    content: str
    market_analysis: AnalysisSummary | None = None


class Exchange(BaseModel):
    """One user turn and the assistant answer, persisted together."""

    session_id: str
    identity: str | None = None
    mode: ChatMode
    user_text: str
    assistant_text: str
    created_at: datetime = Field(default_factory=utcnow)


__all__ = [
    "AnalysisSummary",
    "ChatCompletion",
    "ChatMode",
    "ChatRequest",
    "ContentEvent",
    "ErrorEvent",
    "Exchange",
    "MetadataEvent",
    "PriorTurn",
    "Quote",
    "SectorImpact",
    "StockImpact",
    "StreamEvent",
    "utcnow",
]
