"""Tests for prompt composition and the analysis card."""
from market_chat.schemas import ChatMode, PriorTurn, Quote
from market_chat.services.analysis import (build_analysis_summary,
                                           derive_sentiment)
from market_chat.services.prompt_composer import (PAGE_TEXT_LIMIT,
                                                  build_system_prompt,
                                                  compose_messages,
                                                  render_crypto_block,
                                                  render_market_block)


def quote(symbol: str, price: float, pct: float) -> Quote:
    return Quote(symbol=symbol, price=price, change_percent=pct)


def test_market_block_format():
    block = render_market_block({"AAPL": quote("AAPL", 190.12, 1.5), "TSLA": quote("TSLA", 250.0, -2.0)})
    assert block == "REAL-TIME MARKET DATA:\nAAPL: $190.12 (1.50%)\nTSLA: $250.0 (-2.00%)"


def test_empty_blocks():
    assert render_market_block({}) == ""
    assert render_crypto_block("BTC", None) == ""


def test_crypto_block_format():
    block = render_crypto_block("BTC", quote("BTC", 60000.5, 2.346))
    assert block == "REAL-TIME CRYPTO DATA for BTC: Price: $60000.5, Change: 2.35%"


def test_general_prompt_mentions_portfolio():
    prompt = build_system_prompt(ChatMode.GENERAL, portfolio=["AAPL", "NVDA"])
    assert "[AAPL, NVDA]" in prompt
    assert "REAL-TIME" not in prompt


def test_elevated_prompt_embeds_market_context():
    context = render_market_block({"NVDA": quote("NVDA", 900.0, 3.0)})
    prompt = build_system_prompt(ChatMode.MARKET, market_context=context)
    assert "Financial Analyst" in prompt
    assert "NVDA: $900.0 (3.00%)" in prompt
    assert prompt.index("NVDA: $900.0") < prompt.index("CRITICAL INSTRUCTION")


def test_crypto_persona():
    prompt = build_system_prompt(ChatMode.CRYPTO)
    assert "Crypto" in prompt
    assert "Cite the exact price" in prompt


def test_page_text_is_truncated():
    prompt = build_system_prompt(ChatMode.GENERAL, page_text="x" * (PAGE_TEXT_LIMIT + 500))
    assert "x" * PAGE_TEXT_LIMIT in prompt
    assert "x" * (PAGE_TEXT_LIMIT + 1) not in prompt


def test_compose_keeps_latest_prior_turns_in_order():
    turns = [
        PriorTurn(role="user" if i % 2 == 0 else "assistant", content=f"turn {i}")
        for i in range(14)
    ]
    messages = compose_messages(ChatMode.GENERAL, "new question", prior_turns=turns)

    assert messages[0]["role"] == "system"
    assert [m["content"] for m in messages[1:-1]] == [f"turn {i}" for i in range(4, 14)]
    assert messages[-1] == {"role": "user", "content": "new question"}


def test_compose_without_history():
    messages = compose_messages(ChatMode.MARKET, "hi", max_prior_turns=0,
                                prior_turns=[PriorTurn(role="user", content="old")])
    assert [m["role"] for m in messages] == ["system", "user"]


def test_analysis_summary_shape():
    summary = build_analysis_summary(
        ChatMode.MARKET, ["AAPL", "TSLA"], quotes={"AAPL": quote("AAPL", 190.0, 1.0)}
    )
    assert summary.sentiment == "neutral"
    assert summary.impact_score == 8
    assert summary.confidence == 90
    assert summary.symbol == "AAPL"
    assert summary.symbols == ["AAPL", "TSLA"]
    assert len(summary.sectors) == 1
    sector = summary.sectors[0]
    assert sector.name == "Technology"
    assert [s.symbol for s in sector.stocks] == ["AAPL", "TSLA"]
    assert sector.stocks[0].price == 190.0
    assert sector.stocks[1].price is None
    assert summary.prediction == "Current trend analysis for AAPL, TSLA."


def test_crypto_summary_sector():
    summary = build_analysis_summary(ChatMode.CRYPTO, ["BTC"], sentiment="bullish")
    assert summary.sectors[0].name == "Cryptocurrency"
    assert summary.sectors[0].impact == "positive"
    assert summary.sentiment == "bullish"


def test_derive_sentiment():
    assert derive_sentiment("Outlook is Bullish for NVDA") == "bullish"
    assert derive_sentiment("a bearish divergence") == "bearish"
    assert derive_sentiment("Flat session.") == "neutral"
