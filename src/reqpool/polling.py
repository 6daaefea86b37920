import json
import asyncio
import datetime
import logging
from typing import Any, Callable, List, Self

from reqpool.config import DEFAULT_POLL_INTERVAL, Settings, TransportConfig, validate_target
from reqpool.envelope import BodyParser, ResultEnvelope, perform_attempt
from reqpool.errors import ConfigurationError
from reqpool.transport import AiohttpTransport, Transport

logger = logging.getLogger(__name__)

EnvelopeListener = Callable[[ResultEnvelope[Any]], None]


def _log_retry_failure(task: "asyncio.Task[None]") -> None:
    # Marks the exception as retrieved; PollHandle.wait() still re-raises it.
    if not task.cancelled() and task.exception() is not None:
        logger.error("Polling retry task failed", exc_info=task.exception())


class PollCallbacks:
    def __init__(
        self: Self,
        on_update: EnvelopeListener | None = None,
        on_success: EnvelopeListener | None = None,
        on_max_attempts_reached: EnvelopeListener | None = None,
    ) -> None:
        self.on_update = on_update
        self.on_success = on_success
        self.on_max_attempts_reached = on_max_attempts_reached


class PollHandle:
    """Returned by :meth:`PollingFetcher.poll` once the first attempt is done.

    ``result`` is that first envelope and never changes. While retries are
    running, ``latest`` is replaced after every attempt and each registered
    listener is called with the new envelope. ``stop()`` cancels the retries.
    """

    def __init__(self: Self, result: ResultEnvelope[Any]) -> None:
        self.result: ResultEnvelope[Any] = result
        self.latest: ResultEnvelope[Any] = result
        self._listeners: List[EnvelopeListener] = []
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self: Self) -> bool:
        return self._task is not None and not self._task.done()

    def on_update(self: Self, listener: EnvelopeListener) -> None:
        self._listeners.append(listener)

    def stop(self: Self) -> None:
        task = self._task
        if task is not None and not task.done():
            logger.info("Polling stopped by caller after %d attempts", self.latest.sequence)
            task.cancel()

    async def wait(self: Self) -> ResultEnvelope[Any]:
        """Wait for the retries to end and return the last envelope.

        Exceptions raised by callbacks inside the retry task are re-raised here.
        """
        if self._task is not None:
            await asyncio.wait([self._task])
            if not self._task.cancelled():
                self._task.result()
        return self.latest

    def _publish(self: Self, envelope: ResultEnvelope[Any]) -> None:
        self.latest = envelope
        for listener in self._listeners:
            listener(envelope)


class PollingFetcher:
    def __init__(
        self: Self,
        url: str,
        transport: Transport | None = None,
        config: TransportConfig = TransportConfig(),
        method: str = "GET",
        body: Any = None,
        interval: datetime.timedelta = DEFAULT_POLL_INTERVAL,
        max_attempts: int | None = None,
        callbacks: PollCallbacks = PollCallbacks(),
        stop_event: asyncio.Event | None = None,
        parse_body: BodyParser = json.loads,
    ) -> None:
        validate_target(url)
        if interval.total_seconds() <= 0:
            raise ConfigurationError("interval should be a positive duration")
        if max_attempts is not None and max_attempts < 1:
            raise ConfigurationError("max_attempts should be at least 1")

        self.url: str = url
        self.transport: Transport = transport if transport is not None else AiohttpTransport()
        self.config: TransportConfig = config
        self.method: str = method
        self.body: Any = body
        self.interval: datetime.timedelta = interval
        self.max_attempts: int | None = max_attempts
        self.callbacks: PollCallbacks = callbacks
        self.stop_event: asyncio.Event | None = stop_event
        self.parse_body: BodyParser = parse_body

    @classmethod
    def from_settings(cls, url: str, settings: Settings, **kwargs: Any) -> "PollingFetcher":
        kwargs.setdefault("transport", AiohttpTransport(timeout_s=settings.timeout_s))
        kwargs.setdefault("interval", settings.poll_interval)
        kwargs.setdefault("max_attempts", settings.max_poll_attempts)
        return cls(url, **kwargs)

    async def _attempt(self: Self, previous: ResultEnvelope[Any] | None) -> ResultEnvelope[Any]:
        return await perform_attempt(
            self.transport, self.method, self.url, self.config, self.body, previous=previous, parse_body=self.parse_body
        )

    def _notify(self: Self, envelope: ResultEnvelope[Any]) -> None:
        if self.callbacks.on_update:
            self.callbacks.on_update(envelope)
        if not envelope.errored and self.callbacks.on_success:
            self.callbacks.on_success(envelope)

    async def _wait_interval(self: Self) -> bool:
        """Sleep one interval; True if the caller's stop event fired meanwhile."""
        delay: float = self.interval.total_seconds()
        if self.stop_event is None:
            await asyncio.sleep(delay)
            return False
        try:
            await asyncio.wait_for(self.stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    async def _retry_loop(self: Self, handle: PollHandle) -> None:
        while True:
            if self.max_attempts is not None and handle.latest.sequence >= self.max_attempts:
                logger.info("Giving up on %s %s after %d attempts", self.method, self.url, handle.latest.sequence)
                if self.callbacks.on_max_attempts_reached:
                    self.callbacks.on_max_attempts_reached(handle.latest)
                return

            if await self._wait_interval():
                logger.info("Polling of %s %s stopped by stop event", self.method, self.url)
                return

            envelope: ResultEnvelope[Any] = await self._attempt(handle.latest)
            handle._publish(envelope)
            self._notify(envelope)
            if not envelope.errored:
                logger.info("%s %s succeeded after %d attempts", self.method, self.url, envelope.sequence)
                return

    async def poll(self: Self) -> PollHandle:
        first: ResultEnvelope[Any] = await self._attempt(None)
        handle: PollHandle = PollHandle(first)
        self._notify(first)
        if first.errored:
            handle._task = asyncio.create_task(self._retry_loop(handle))
            handle._task.add_done_callback(_log_retry_failure)
        return handle
