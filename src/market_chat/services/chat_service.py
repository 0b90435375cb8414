"""Chat orchestration: gate, detect, enrich, compose, relay, persist."""
import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from functools import partial

from market_chat.errors import (ConfigurationError, QuotaExceededError,
                                ValidationError)
from market_chat.providers.completion import OpenRouterClient
from market_chat.schemas import (AnalysisSummary, ChatCompletion, ChatMode,
                                 ChatRequest, Exchange, Quote)
from market_chat.services.analysis import (build_analysis_summary,
                                           derive_sentiment)
from market_chat.services.page_extractor import PageExtractor, find_url
from market_chat.services.persistence import PersistenceSink
from market_chat.services.prompt_composer import (compose_messages,
                                                  render_crypto_block,
                                                  render_market_block)
from market_chat.services.quote_resolver import MAX_LIVE_SYMBOLS, QuoteResolver
from market_chat.services.rate_limiter import RateLimiter
from market_chat.services.stream_relay import StreamRelay, detach
from market_chat.services.ticker_extractor import (TickerExtraction,
                                                   extract_tickers,
                                                   pick_crypto_symbol)

logger = logging.getLogger(__name__)

QUOTA_MESSAGE = "Daily limit reached for guest users. Please sign in to continue."


@dataclass
class PreparedChat:
    """Everything computed before the upstream completion is opened."""

    request: ChatRequest
    user_text: str
    messages: list[dict[str, str]]
    summary: AnalysisSummary | None = None
    summary_symbols: list[str] = field(default_factory=list)
    quotes: dict[str, Quote] = field(default_factory=dict)


class ChatService:
    """Runs the market-context pipeline for one chat request.

    prepare() raises ChatError subclasses for configuration, validation and
    quota failures before any provider is called. stream() additionally
    raises UpstreamCompletionError when the completion upstream refuses the
    request; once it returns, errors no longer surface to the caller.
    """

    def __init__(
        self,
        *,
        completion: OpenRouterClient,
        resolver: QuoteResolver,
        sink: PersistenceSink | None = None,
        rate_limiter: RateLimiter | None = None,
        page_extractor: PageExtractor | None = None,
        max_live_symbols: int = MAX_LIVE_SYMBOLS,
    ) -> None:
        self._completion = completion
        self._resolver = resolver
        self._sink = sink
        self._rate_limiter = rate_limiter
        self._page_extractor = page_extractor
        self._max_live_symbols = max_live_symbols
        self._relay_tasks: set[asyncio.Task] = set()

    async def _check_quota(self, request: ChatRequest, network_id: str) -> None:
        if request.identity or not request.mode.elevated or self._rate_limiter is None:
            return
        if not await self._rate_limiter.check(network_id):
            raise QuotaExceededError(QUOTA_MESSAGE)

    async def _live_quotes(
        self, request: ChatRequest, text: str, extraction: TickerExtraction
    ) -> tuple[str, dict[str, Quote], list[str]]:
        """Resolve live quotes for the mode; returns (context block, quotes, summary symbols)."""
        if request.mode is ChatMode.CRYPTO:
            target = pick_crypto_symbol(text, extraction.symbols)
            quote = await self._resolver.resolve(target)
            quotes = {target: quote} if quote is not None else {}
            symbols = list(extraction.symbols) or [target]
            return render_crypto_block(target, quote), quotes, symbols
        if extraction.symbols:
            quotes = await self._resolver.resolve_many(
                extraction.symbols, limit=self._max_live_symbols
            )
            return render_market_block(quotes), quotes, list(extraction.symbols)
        return "", {}, []

    async def _page_text(self, text: str) -> str | None:
        if self._page_extractor is None:
            return None
        url = find_url(text)
        if url is None:
            return None
        return await self._page_extractor.extract(url)

    async def _no_quotes(self) -> tuple[str, dict[str, Quote], list[str]]:
        return "", {}, []

    async def prepare(self, request: ChatRequest, network_id: str) -> PreparedChat:
        """Validate, gate and build the prompt for a request.

        Args:
            request: The inbound chat request.
            network_id: Caller network identity used for anonymous quotas.

        Returns:
            The composed messages plus the analysis summary, if any.
        """
        if not self._completion.configured:
            raise ConfigurationError("OpenRouter API key not configured on server")
        text = (request.message or "").strip()
        if not text:
            raise ValidationError("Message is required")
        await self._check_quota(request, network_id)

        extraction = extract_tickers(text)
        enrich = request.mode.elevated and bool(extraction)
        logger.info(
            "Chat mode=%s symbols=%s crypto=%s", request.mode.value,
            list(extraction.symbols), extraction.is_crypto,
        )

        (market_context, quotes, summary_symbols), page_text = await asyncio.gather(
            self._live_quotes(request, text, extraction) if enrich else self._no_quotes(),
            self._page_text(text),
        )

        messages = compose_messages(
            request.mode,
            text,
            portfolio=request.portfolio,
            market_context=market_context,
            page_text=page_text,
            prior_turns=request.prior_turns,
        )
        summary = (
            build_analysis_summary(request.mode, summary_symbols, quotes=quotes)
            if summary_symbols
            else None
        )
        return PreparedChat(
            request=request,
            user_text=text,
            messages=messages,
            summary=summary,
            summary_symbols=summary_symbols,
            quotes=quotes,
        )

    async def _persist(self, prepared: PreparedChat, answer: str) -> None:
        if self._sink is None:
            return
        await self._sink.persist(
            Exchange(
                session_id=prepared.request.session_id,
                identity=prepared.request.identity,
                mode=prepared.request.mode,
                user_text=prepared.user_text,
                assistant_text=answer,
            )
        )

    async def stream(self, request: ChatRequest, network_id: str) -> AsyncIterator[bytes]:
        """Prepare the request, open the upstream stream and return NDJSON bytes.

        The relay runs in a background task so that upstream consumption and
        persistence finish even if the client goes away.
        """
        prepared = await self.prepare(request, network_id)
        response = await self._completion.open_stream(prepared.messages, request.model)
        relay = StreamRelay.from_response(
            response,
            metadata=prepared.summary,
            on_complete=partial(self._persist, prepared),
        )
        return detach(relay, self._relay_tasks)

    async def complete(self, request: ChatRequest, network_id: str) -> ChatCompletion:
        """Non-streaming variant: sentiment is derived from the finished answer."""
        prepared = await self.prepare(request, network_id)
        answer = await self._completion.complete(prepared.messages, request.model)
        summary = None
        if prepared.summary is not None:
            summary = build_analysis_summary(
                request.mode,
                prepared.summary_symbols,
                quotes=prepared.quotes,
                sentiment=derive_sentiment(answer),
            )
        await self._persist(prepared, answer)
        return ChatCompletion(content=answer, market_analysis=summary)

    async def drain(self) -> None:
        """Wait for in-flight relays (and their persistence) to finish."""
        if self._relay_tasks:
            await asyncio.gather(*list(self._relay_tasks), return_exceptions=True)
