"""Builds the message list sent to the completion upstream. No I/O."""
from collections.abc import Mapping, Sequence

from market_chat.schemas import ChatMode, PriorTurn, Quote

MAX_PRIOR_TURNS = 10
PAGE_TEXT_LIMIT = 4000

_GENERAL_PERSONA = "You are Market Chat, a helpful news assistant."

_MARKET_PERSONA = """You are a Professional Financial Analyst (Wall Street style).
Style: Professional, data-driven, concise.
Focus: Market impact, sector rotation, macroeconomics."""

_CRYPTO_PERSONA = """You are a "Crypto Degen" and Expert Analyst.
Style: Use crypto slang (HODL, moon, bearish divergence) but keep it professional enough for advice.
Focus: Price action, sentiment, and technicals."""

_MARKET_DIRECTIVES = """CRITICAL INSTRUCTION:
- If Real-Time Data is provided above, USE IT.
- Do NOT output raw JSON or code snippets in your response. Focus on text analysis."""

_CRYPTO_DIRECTIVES = """CRITICAL INSTRUCTION:
- If Real-Time Data is provided above, USE IT. Cite the exact price.
- Do NOT output raw JSON or code snippets in your response. Focus on text analysis."""


def _format_pct(quote: Quote) -> str:
    return f"{quote.change_percent:.2f}"


def render_market_block(quotes: Mapping[str, Quote]) -> str:
    """Render equity quotes as a REAL-TIME MARKET DATA block; empty when no quotes."""
    if not quotes:
        return ""
    lines = [f"{sym}: ${q.price} ({_format_pct(q)}%)" for sym, q in quotes.items()]
    return "REAL-TIME MARKET DATA:\n" + "\n".join(lines)


def render_crypto_block(symbol: str, quote: Quote | None) -> str:
    """Render one crypto quote; empty when the coin could not be priced."""
    if quote is None:
        return ""
    return (
        f"REAL-TIME CRYPTO DATA for {symbol}: Price: ${quote.price}, "
        f"Change: {_format_pct(quote)}%"
    )


def _portfolio_line(mode: ChatMode, portfolio: Sequence[str]) -> str:
    if not portfolio:
        return ""
    held = ", ".join(portfolio)
    if mode is ChatMode.GENERAL:
        return f"The user holds these assets: [{held}]. Prioritize news impacting these stocks."
    return f"The user is tracking: [{held}]."


def build_system_prompt(
    mode: ChatMode,
    *,
    portfolio: Sequence[str] = (),
    market_context: str = "",
    page_text: str | None = None,
) -> str:
    """System message for the given mode."""
    if mode is ChatMode.CRYPTO:
        parts = [_CRYPTO_PERSONA, _portfolio_line(mode, portfolio), market_context, _CRYPTO_DIRECTIVES]
    elif mode is ChatMode.MARKET:
        parts = [_MARKET_PERSONA, _portfolio_line(mode, portfolio), market_context, _MARKET_DIRECTIVES]
    else:
        parts = [_GENERAL_PERSONA, _portfolio_line(mode, portfolio)]

    if page_text:
        parts.append(
            "The user shared a web page. Its extracted text follows:\n"
            + page_text[:PAGE_TEXT_LIMIT]
        )
    return "\n\n".join(p for p in parts if p)


def compose_messages(
    mode: ChatMode,
    user_text: str,
    *,
    portfolio: Sequence[str] = (),
    market_context: str = "",
    page_text: str | None = None,
    prior_turns: Sequence[PriorTurn] = (),
    max_prior_turns: int = MAX_PRIOR_TURNS,
) -> list[dict[str, str]]:
    """Assemble system prompt, the most recent prior turns, and the new message.

    Args:
        mode: Conversation mode; selects the persona.
        user_text: The new user message.
        portfolio: Symbols the user holds or tracks.
        market_context: Pre-rendered live quote block (may be empty).
        page_text: Extracted text of a linked page, truncated to PAGE_TEXT_LIMIT.
        prior_turns: Earlier conversation, oldest first.
        max_prior_turns: How many of the latest prior turns to keep.

    Returns:
        OpenAI-style ``[{"role": ..., "content": ...}]`` messages.
    """
    messages = [
        {
            "role": "system",
            "content": build_system_prompt(
                mode, portfolio=portfolio, market_context=market_context, page_text=page_text
            ),
        }
    ]
    recent = list(prior_turns)[-max_prior_turns:] if max_prior_turns > 0 else []
    messages.extend({"role": t.role, "content": t.content} for t in recent)
    messages.append({"role": "user", "content": user_text})
    return messages
