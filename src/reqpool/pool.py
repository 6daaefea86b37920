import json
import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Self

from reqpool.config import TransportConfig, join_target, validate_target
from reqpool.envelope import BodyParser, ResultEnvelope, perform_attempt
from reqpool.errors import ConfigurationError
from reqpool.transport import AiohttpTransport, Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestDescriptor:
    key: str
    path: str
    method: str = "GET"
    body: Any = None
    config: TransportConfig | None = None
    # May be a plain function or a coroutine function.
    on_result: Callable[[ResultEnvelope[Any]], Any] | None = None


class RequestPool:
    def __init__(
        self: Self,
        base_url: str,
        default_config: TransportConfig = TransportConfig(),
        transport: Transport | None = None,
        parse_body: BodyParser = json.loads,
    ) -> None:
        validate_target(base_url)
        self.base_url: str = base_url
        self.default_config: TransportConfig = default_config
        self.transport: Transport = transport if transport is not None else AiohttpTransport()
        self.parse_body: BodyParser = parse_body

    async def request(
        self: Self, method: str, path: str, body: Any = None, config: TransportConfig | None = None
    ) -> ResultEnvelope[Any]:
        return await perform_attempt(
            self.transport,
            method,
            join_target(self.base_url, path),
            self.default_config.merged_with(config),
            body,
            parse_body=self.parse_body,
        )

    async def dispatch_all(self: Self, descriptors: Iterable[RequestDescriptor]) -> Dict[str, ResultEnvelope[Any]]:
        """Run every descriptor in order, one at a time, and map results by key.

        A failed call never aborts the batch; it is recorded in its envelope.
        Duplicate keys keep the result of the later descriptor.
        """
        batch: List[RequestDescriptor] = list(descriptors)
        if not batch:
            raise ConfigurationError("at least one request descriptor required")

        results: Dict[str, ResultEnvelope[Any]] = {}
        for descriptor in batch:
            envelope = await self.request(descriptor.method, descriptor.path, descriptor.body, descriptor.config)
            results[descriptor.key] = envelope
            if descriptor.on_result is not None:
                outcome = descriptor.on_result(envelope)
                if inspect.isawaitable(outcome):
                    await outcome

        failed: int = sum(1 for envelope in results.values() if envelope.errored)
        logger.info(
            "Dispatched %d requests to %s: %d succeeded, %d failed",
            len(batch),
            self.base_url,
            len(results) - failed,
            failed,
        )
        return results

    def main(self: Self, descriptors: Iterable[RequestDescriptor]) -> Dict[str, ResultEnvelope[Any]]:
        return asyncio.run(self.dispatch_all(descriptors))
