import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Self

import aiohttp

from reqpool.config import DEFAULT_TIMEOUT_S, TransportConfig
from reqpool.errors import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    status: int
    text: str
    headers: Dict[str, str] = field(default_factory=dict)


# (method, url, config, body) -> response; network failures raise TransportError.
Transport = Callable[[str, str, TransportConfig, Any], Awaitable[TransportResponse]]


class AiohttpTransport:
    def __init__(self: Self, timeout_s: float = DEFAULT_TIMEOUT_S) -> None:
        self.timeout_s: float = timeout_s

    def _request_kwargs(self: Self, config: TransportConfig, body: Any) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = dict(config.request_kwargs)
        if config.headers:
            kwargs["headers"] = dict(config.headers)
        if config.verify_ssl is not None:
            kwargs["ssl"] = config.verify_ssl
        if body is not None:
            if isinstance(body, (str, bytes, aiohttp.FormData)):
                kwargs["data"] = body
            else:
                kwargs["json"] = body
        return kwargs

    async def __call__(self: Self, method: str, url: str, config: TransportConfig, body: Any = None) -> TransportResponse:
        timeout = aiohttp.ClientTimeout(total=config.timeout_s if config.timeout_s is not None else self.timeout_s)
        logger.debug("%s %s", method, url)
        try:
            # One session per call; connections are never reused across requests.
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(method, url, **self._request_kwargs(config, body)) as response:
                    text: str = await response.text(errors="replace")
                    return TransportResponse(status=response.status, text=text, headers=dict(response.headers))
        except asyncio.TimeoutError as e:
            raise TransportError(f"Request to {url} timed out after {timeout.total}s") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e
