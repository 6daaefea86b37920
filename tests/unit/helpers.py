import json
import asyncio
from typing import Any, Dict, List, Self

from yarl import URL

from reqpool.config import TransportConfig
from reqpool.errors import TransportError
from reqpool.transport import TransportResponse


def json_response(payload: Any, status: int = 200) -> TransportResponse:
    return TransportResponse(status=status, text=json.dumps(payload))


class StubTransport:
    """Answers from a path -> response table and records every call.

    A table entry may be an exception instance, which is raised instead.
    ``events`` holds ("start", path) / ("end", path) pairs in the order they happened.
    """

    def __init__(self: Self, routes: Dict[str, TransportResponse | Exception]) -> None:
        self.routes = routes
        self.calls: List[Dict[str, Any]] = []
        self.events: List[tuple[str, str]] = []

    async def __call__(self: Self, method: str, url: str, config: TransportConfig, body: Any = None) -> TransportResponse:
        path: str = URL(url).path_qs
        self.calls.append({"method": method, "url": url, "config": config, "body": body})
        self.events.append(("start", path))
        await asyncio.sleep(0.001)
        self.events.append(("end", path))
        outcome = self.routes[path]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FlakyTransport:
    """Fails the first ``failures`` calls, then returns ``payload``."""

    def __init__(self: Self, failures: int, payload: Any = None, delay_s: float = 0.0) -> None:
        self.failures = failures
        self.payload = payload if payload is not None else {"ok": True}
        self.delay_s = delay_s
        self.calls: int = 0
        self.in_flight: int = 0
        self.max_in_flight: int = 0

    async def __call__(self: Self, method: str, url: str, config: TransportConfig, body: Any = None) -> TransportResponse:
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay_s)
            if self.calls <= self.failures:
                raise TransportError(f"connection refused (call {self.calls})")
            return json_response(self.payload)
        finally:
            self.in_flight -= 1


def always_failing(failures: int = 10**9, delay_s: float = 0.0) -> FlakyTransport:
    return FlakyTransport(failures=failures, delay_s=delay_s)
