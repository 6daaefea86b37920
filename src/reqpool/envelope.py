import json
import time
import logging
from enum import Enum
from dataclasses import dataclass
from typing import Any, Callable, Generic, Tuple, TypeVar

from reqpool.config import TransportConfig
from reqpool.errors import HttpStatusError, ParseError
from reqpool.transport import Transport, TransportResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

BodyParser = Callable[[str], Any]


class ResponseState(Enum):
    SUCCESS = "SUCCESS"
    HTTP_ERROR = "HTTP_ERROR"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    PARSE_ERROR = "PARSE_ERROR"


@dataclass(frozen=True)
class ResultEnvelope(Generic[T]):
    """Outcome of the most recent attempt of one logical call.

    ``loaded`` and ``errored`` never both hold. ``body`` is the parsed payload
    on success, the raw response text when the status is non-2xx or the body is
    not valid JSON, and ``None`` before any attempt or when the transport
    failed outright.
    """

    loaded: bool = False
    errored: bool = False
    error_message: str | None = None
    sequence: int = 0
    body: T | str | None = None
    requested_at: int = 0
    round_trip_ms: int = 0
    status: int | None = None
    state: ResponseState | None = None

    @classmethod
    def pending(cls) -> "ResultEnvelope[T]":
        return cls()


def interpret_response(response: TransportResponse, parse_body: BodyParser = json.loads) -> Tuple[ResponseState, Any, str | None]:
    if not 200 <= response.status < 300:
        return ResponseState.HTTP_ERROR, response.text, str(HttpStatusError(response.status))
    try:
        return ResponseState.SUCCESS, parse_body(response.text), None
    except Exception as e:
        # Any parser failure, including RecursionError on deeply nested JSON, degrades to raw text.
        if isinstance(e, ParseError):
            message = str(e)
        elif isinstance(e, ValueError):
            message = str(ParseError(f"Invalid JSON response body: {e}"))
        else:
            message = str(ParseError(f"Invalid response body: {type(e).__name__}: {e}"))
        return ResponseState.PARSE_ERROR, response.text, message


async def perform_attempt(
    transport: Transport,
    method: str,
    url: str,
    config: TransportConfig,
    body: Any = None,
    previous: ResultEnvelope[Any] | None = None,
    parse_body: BodyParser = json.loads,
) -> ResultEnvelope[Any]:
    sequence: int = (previous.sequence if previous is not None else 0) + 1
    requested_at: float = time.time()
    started: float = time.monotonic()

    status: int | None = None
    try:
        response: TransportResponse = await transport(method, url, config, body)
    except Exception as e:
        state, payload, message = ResponseState.TRANSPORT_ERROR, None, str(e) or type(e).__name__
    else:
        status = response.status
        state, payload, message = interpret_response(response, parse_body)

    envelope: ResultEnvelope[Any] = ResultEnvelope(
        loaded=state == ResponseState.SUCCESS,
        errored=state != ResponseState.SUCCESS,
        error_message=message,
        sequence=sequence,
        body=payload,
        requested_at=int(requested_at),
        round_trip_ms=max(0, int((time.monotonic() - started) * 1000)),
        status=status,
        state=state,
    )
    if envelope.errored:
        logger.warning("%s %s attempt %d failed: %s", method, url, sequence, message)
    else:
        logger.debug("%s %s attempt %d succeeded in %dms", method, url, sequence, envelope.round_trip_ms)
    return envelope
