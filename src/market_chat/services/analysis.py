"""Builds the AnalysisSummary card attached to elevated-mode answers."""
from collections.abc import Mapping, Sequence

from market_chat.schemas import (AnalysisSummary, ChatMode, Quote,
                                 SectorImpact, StockImpact)

IMPACT_SCORE = 8
CONFIDENCE = 90


def derive_sentiment(text: str) -> str:
    """Keyword sentiment of a finished answer: bullish, bearish or neutral."""
    lowered = text.lower()
    if "bullish" in lowered or "positive" in lowered:
        return "bullish"
    if "bearish" in lowered or "negative" in lowered:
        return "bearish"
    return "neutral"


def build_analysis_summary(
    mode: ChatMode,
    symbols: Sequence[str],
    *,
    quotes: Mapping[str, Quote] | None = None,
    sentiment: str = "neutral",
) -> AnalysisSummary:
    """Summary for the detected symbols.

    In the streaming path the answer does not exist yet, so ``sentiment``
    stays at its neutral placeholder; the non-streaming path passes
    derive_sentiment(answer).
    """
    quotes = quotes or {}
    impact = {"bullish": "positive", "bearish": "negative"}.get(sentiment, "neutral")
    return AnalysisSummary(
        sentiment=sentiment,
        impact_score=IMPACT_SCORE,
        confidence=CONFIDENCE,
        symbol=symbols[0] if symbols else "",
        symbols=list(symbols),
        sectors=[
            SectorImpact(
                name="Cryptocurrency" if mode is ChatMode.CRYPTO else "Technology",
                impact=impact,
                score=9,
                reasoning="Based on real-time price action.",
                stocks=[
                    StockImpact(
                        symbol=sym,
                        name=sym,
                        price=quotes[sym].price if sym in quotes else None,
                        reasoning="Real-time market data",
                        confidence=95,
                    )
                    for sym in symbols
                ],
            )
        ],
        prediction=f"Current trend analysis for {', '.join(symbols)}.",
    )
