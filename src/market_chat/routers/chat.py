"""Chat routes: streaming NDJSON and the non-streaming variant.

Pre-stream failures (validation, configuration, quota, upstream refusal)
come back as a single JSON ``{"error": ...}`` body with a 4xx/5xx status.
"""
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse, StreamingResponse

from market_chat.dependencies import ChatServiceDep, NetworkId
from market_chat.errors import ChatError, ChatErrorMapper
from market_chat.schemas import ChatCompletion, ChatRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/chat", tags=["chat"])

error_mapper = ChatErrorMapper()

NDJSON = "application/x-ndjson"


def _error_response(exc: Exception) -> JSONResponse:
    status_code, detail = error_mapper.to_http(exc)
    if not isinstance(exc, ChatError):
        logger.exception("Unexpected chat failure (%s)", status_code)
    elif status_code >= 500:
        logger.error("Chat request failed (%s): %s", status_code, exc)
    else:
        logger.info("Chat request rejected (%s): %s", status_code, exc)
    return JSONResponse({"error": detail}, status_code=status_code)


@router.post("")
async def chat(
    payload: ChatRequest,
    service: ChatServiceDep,
    network_id: NetworkId,
):
    """Stream an answer as newline-delimited JSON events.

    Each line is ``{"type": "metadata", "data": {...}}`` (at most once, first)
    or ``{"type": "content", "text": "..."}``.
    """
    try:
        body = await service.stream(payload, network_id)
    except Exception as exc:  # pylint: disable=broad-except
        return _error_response(exc)
    return StreamingResponse(body, media_type=NDJSON)


@router.post("/complete", response_model=ChatCompletion, response_model_by_alias=True)
async def chat_complete(
    payload: ChatRequest,
    service: ChatServiceDep,
    network_id: NetworkId,
):
    """Return the whole answer at once, with sentiment derived from it."""
    try:
        return await service.complete(payload, network_id)
    except Exception as exc:  # pylint: disable=broad-except
        return _error_response(exc)
