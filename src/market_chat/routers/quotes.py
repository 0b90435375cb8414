"""Quote lookup through the same cache and fallback chain the chat uses."""
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from market_chat.dependencies import QuoteResolverDep
from market_chat.schemas import Quote

router = APIRouter(prefix="/quotes", tags=["quotes"])


@router.get("/{symbol}", response_model=Quote, response_model_by_alias=True)
async def get_quote(symbol: str, resolver: QuoteResolverDep):
    """Get the current quote for a stock or crypto symbol.

    Args:
        symbol: Ticker (e.g., "AAPL", "BTC", "BTCUSDT").

    Returns:
        The resolved quote, or 404 when no provider has one.
    """
    quote = await resolver.resolve(symbol)
    if quote is None:
        return JSONResponse(
            {"error": f"No quote available for '{symbol.upper()}'"}, status_code=404
        )
    return quote
