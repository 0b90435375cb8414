"""HTTP-level tests for the chat and quote routes."""
import json

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from market_chat.cache import LocalQuoteCache, TieredQuoteCache
from market_chat.errors import GENERIC_UPSTREAM_DETAIL
from market_chat.providers import OpenRouterClient
from market_chat.routers import chat_router, quotes_router
from market_chat.services import ChatService, QuoteResolver, RateLimiter
from tests.fakes import FakeRedis, StubProvider, sse_body


def make_app(
    *, status: int = 200, api_key: str | None = "sk-test", rate_limiter=None, providers=None
) -> FastAPI:
    def handler(request: httpx.Request) -> httpx.Response:
        if status != 200:
            return httpx.Response(status, json={"error": {"message": "secret upstream detail"}})
        if json.loads(request.content)["stream"]:
            return httpx.Response(200, content=sse_body("Apple ", "is up."))
        return httpx.Response(200, json={"choices": [{"message": {"content": "Apple is bullish."}}]})

    resolver = QuoteResolver(
        TieredQuoteCache(LocalQuoteCache()),
        providers or [StubProvider("stocks", {"AAPL": 190.0}, crypto=False)],
    )
    app = FastAPI()
    app.include_router(chat_router)
    app.include_router(quotes_router)
    app.state.quote_resolver = resolver
    app.state.chat_service = ChatService(
        completion=OpenRouterClient(api_key, transport=httpx.MockTransport(handler)),
        resolver=resolver,
        rate_limiter=rate_limiter,
    )
    return app


@pytest.fixture
def client():
    return TestClient(make_app())


def ndjson(response) -> list[dict]:
    return [json.loads(line) for line in response.text.splitlines() if line]


def test_chat_streams_ndjson(client):
    response = client.post("/chat", json={"message": "How is Apple?", "mode": "market"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/x-ndjson")
    events = ndjson(response)
    assert events[0]["type"] == "metadata"
    assert events[0]["data"]["symbols"] == ["AAPL"]
    assert events[0]["data"]["impactScore"] == 8
    assert events[0]["data"]["sectors"][0]["stocks"][0]["price"] == 190.0
    assert [e["text"] for e in events[1:]] == ["Apple ", "is up."]


def test_chat_accepts_camel_case_fields(client):
    response = client.post(
        "/chat",
        json={
            "message": "hi",
            "sessionId": "abc",
            "priorTurns": [{"role": "user", "content": "earlier"}],
        },
    )
    assert response.status_code == 200
    assert [e["type"] for e in ndjson(response)] == ["content", "content"]


def test_missing_message_is_400(client):
    response = client.post("/chat", json={"mode": "market"})
    assert response.status_code == 400
    assert response.json() == {"error": "Message is required"}


def test_missing_api_key_is_500():
    response = TestClient(make_app(api_key=None)).post("/chat", json={"message": "hi"})
    assert response.status_code == 500
    assert "not configured" in response.json()["error"]


def test_upstream_refusal_is_502_with_generic_detail():
    response = TestClient(make_app(status=401)).post("/chat", json={"message": "hi"})
    assert response.status_code == 502
    assert response.json() == {"error": GENERIC_UPSTREAM_DETAIL}
    assert "secret" not in response.text


def test_quota_exceeded_is_429_per_forwarded_ip():
    app = make_app(rate_limiter=RateLimiter(FakeRedis(), max_requests=1))
    client = TestClient(app)
    payload = {"message": "AAPL?", "mode": "market"}

    first = client.post("/chat", json=payload, headers={"X-Forwarded-For": "198.51.100.1, 10.0.0.1"})
    second = client.post("/chat", json=payload, headers={"X-Forwarded-For": "198.51.100.1"})
    other = client.post("/chat", json=payload, headers={"X-Forwarded-For": "198.51.100.2"})

    assert first.status_code == 200
    assert second.status_code == 429
    assert "limit" in second.json()["error"].lower()
    assert other.status_code == 200


def test_chat_complete_returns_camel_case_body(client):
    response = client.post("/chat/complete", json={"message": "AAPL outlook", "mode": "market"})

    assert response.status_code == 200
    body = response.json()
    assert body["content"] == "Apple is bullish."
    assert body["marketAnalysis"]["sentiment"] == "bullish"


def test_quote_lookup(client):
    response = client.get("/quotes/aapl")
    assert response.status_code == 200
    body = response.json()
    assert body["symbol"] == "AAPL"
    assert body["price"] == 190.0
    assert "changePercent" in body


def test_unknown_quote_is_404(client):
    response = client.get("/quotes/ZZZZ")
    assert response.status_code == 404
    assert "ZZZZ" in response.json()["error"]


def test_unexpected_failure_keeps_error_body():
    crypto = StubProvider("crypto", error=RuntimeError("provider bug"), crypto=True)
    client = TestClient(make_app(providers=[crypto]), raise_server_exceptions=False)

    response = client.post("/chat", json={"message": "BTC price?", "mode": "crypto"})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
