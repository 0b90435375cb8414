"""Relays an upstream completion event-stream to the client as NDJSON events.

Upstream speaks server-sent events (``data: {...}`` lines, ``: comment`` keep-
alives, a ``data: [DONE]`` terminator). The client receives one JSON object
per line: an optional leading ``{"type": "metadata", ...}`` followed by
``{"type": "content", "text": ...}`` deltas in upstream order, and a single
``{"type": "error", "message": ...}`` when the upstream fails midway.
"""
import asyncio
import codecs
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable
from contextlib import aclosing
from enum import Enum

import httpx

from market_chat.errors import GENERIC_UPSTREAM_DETAIL, UpstreamCompletionError
from market_chat.schemas import (AnalysisSummary, ContentEvent, ErrorEvent,
                                 MetadataEvent, StreamEvent)

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"
STREAM_BUFFER_EVENTS = 64


class RelayState(str, Enum):
    IDLE = "idle"
    OPEN = "open"
    RELAYING = "relaying"
    COMPLETE = "complete"
    FAILED = "failed"


class LineTokenizer:
    """Incremental splitter from raw byte chunks to complete text lines.

    A line (or a multi-byte UTF-8 character) may span two reads; the
    unterminated remainder stays in the carry-over buffer until the next
    feed() or flush().
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[str]:
        """Add a chunk and return every line it completed, without terminators."""
        self._buffer += self._decoder.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")
        return [line.rstrip("\r") for line in lines]

    def flush(self) -> list[str]:
        """Return the final unterminated line, if any, and reset."""
        self._buffer += self._decoder.decode(b"", final=True)
        rest, self._buffer = self._buffer.rstrip("\r"), ""
        return [rest] if rest else []


def parse_sse_line(line: str) -> dict | str | None:
    """Parse one upstream line.

    Returns:
        The decoded JSON object of a data line, DONE_SENTINEL for the
        terminator, or None for blank lines, comments, other SSE fields and
        malformed fragments.
    """
    line = line.strip()
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX):].strip()
    if payload == DONE_SENTINEL:
        return DONE_SENTINEL
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        logger.debug("Skipping malformed stream line: %.200s", payload)
        return None
    return data if isinstance(data, dict) else None


def extract_delta(data: dict) -> str | None:
    """Text delta of an OpenAI-style chunk; raises on an in-band error object."""
    if "error" in data:
        raise UpstreamCompletionError(f"Upstream stream error: {data['error']}")
    choices = data.get("choices") or []
    if not choices:
        return None
    delta = choices[0].get("delta") or {}
    content = delta.get("content")
    return content or None


def encode_event(event: StreamEvent) -> bytes:
    """Serialize a stream event as one NDJSON line."""
    return (
        json.dumps(event.model_dump(mode="json", by_alias=True), ensure_ascii=False)
        + "\n"
    ).encode("utf-8")


class StreamRelay:
    """State machine IDLE -> OPEN -> RELAYING -> COMPLETE | FAILED.

    Constructed over an already-open upstream (hence OPEN). events() yields
    the metadata event (if any) and then content events in upstream order,
    accumulating the full answer. On COMPLETE, ``on_complete(full_text)``
    runs before the upstream transport is closed. On FAILED nothing is
    persisted and the sequence ends with one ErrorEvent carrying a generic,
    user-safe message.
    """

    def __init__(
        self,
        chunks: AsyncIterable[bytes],
        *,
        metadata: AnalysisSummary | None = None,
        on_complete: Callable[[str], Awaitable[None]] | None = None,
        aclose: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self._chunks = chunks
        self._metadata = metadata
        self._on_complete = on_complete
        self._aclose = aclose
        self._parts: list[str] = []
        self.state = RelayState.OPEN

    @classmethod
    def from_response(
        cls,
        response: httpx.Response,
        *,
        metadata: AnalysisSummary | None = None,
        on_complete: Callable[[str], Awaitable[None]] | None = None,
    ) -> "StreamRelay":
        return cls(
            response.aiter_bytes(),
            metadata=metadata,
            on_complete=on_complete,
            aclose=response.aclose,
        )

    @property
    def text(self) -> str:
        """Answer text accumulated so far."""
        return "".join(self._parts)

    async def _lines(self) -> AsyncIterator[str]:
        tokenizer = LineTokenizer()
        async for chunk in self._chunks:
            for line in tokenizer.feed(chunk):
                yield line
        for line in tokenizer.flush():
            yield line

    async def events(self) -> AsyncIterator[StreamEvent]:
        """Yield the re-framed event sequence. Single use."""
        if self.state is not RelayState.OPEN:
            raise RuntimeError(f"Relay cannot start from state {self.state.value}")
        self.state = RelayState.RELAYING
        try:
            if self._metadata is not None:
                yield MetadataEvent(data=self._metadata)

            async with aclosing(self._lines()) as lines:
                async for line in lines:
                    parsed = parse_sse_line(line)
                    if parsed is None:
                        continue
                    if parsed == DONE_SENTINEL:
                        break
                    delta = extract_delta(parsed)
                    if delta is not None:
                        self._parts.append(delta)
                        yield ContentEvent(text=delta)

            self.state = RelayState.COMPLETE
            if self._on_complete is not None:
                await self._on_complete(self.text)
        except (httpx.HTTPError, UpstreamCompletionError) as exc:
            self.state = RelayState.FAILED
            logger.error("Completion stream failed after %s chars: %s", len(self.text), exc)
            yield ErrorEvent(message=GENERIC_UPSTREAM_DETAIL)
        finally:
            if self._aclose is not None:
                await self._aclose()


class _Channel:
    """Bounded hand-off between the relay task and the client iterator.

    While the client reads, a full buffer suspends the relay. Once the client
    is gone, events are dropped so the relay can run to completion.
    """

    def __init__(self, maxsize: int) -> None:
        self.queue: asyncio.Queue[bytes | None] = asyncio.Queue(maxsize=maxsize)
        self.abandoned = False

    async def put(self, item: bytes | None) -> None:
        if not self.abandoned:
            await self.queue.put(item)

    def abandon(self) -> None:
        self.abandoned = True
        # Wakes a relay blocked on a full buffer.
        while not self.queue.empty():
            self.queue.get_nowait()


async def _pump(events: AsyncIterator[StreamEvent], channel: _Channel) -> None:
    try:
        async for event in events:
            await channel.put(encode_event(event))
    except Exception:  # pylint: disable=broad-except
        logger.exception("Stream relay crashed")
    finally:
        await channel.put(None)


async def _drain(channel: _Channel) -> AsyncIterator[bytes]:
    try:
        while True:
            item = await channel.queue.get()
            if item is None:
                return
            yield item
    finally:
        channel.abandon()


def detach(
    relay: StreamRelay,
    tasks: set[asyncio.Task],
    buffer_size: int = STREAM_BUFFER_EVENTS,
) -> AsyncIterator[bytes]:
    """Run the relay in its own task and return the client-facing byte stream.

    The relay advances at the client's read pace, at most ``buffer_size``
    events ahead. If the client disconnects and the returned iterator is
    closed, the relay keeps consuming upstream without buffering and still
    persists on completion. ``tasks`` holds a reference to the running task
    until it finishes.
    """
    channel = _Channel(buffer_size)
    task = asyncio.create_task(_pump(relay.events(), channel))
    tasks.add(task)
    task.add_done_callback(tasks.discard)
    return _drain(channel)
