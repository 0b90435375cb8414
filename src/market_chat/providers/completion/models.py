"""Models for the OpenRouter completion client."""
from pydantic import BaseModel


class ChatMessagePayload(BaseModel):
    role: str
    content: str


class CompletionParams(BaseModel):
    """Body of POST /chat/completions."""

    model: str
    messages: list[ChatMessagePayload]
    temperature: float = 0.7
    max_tokens: int = 2000
    stream: bool = False
