import os
import math
import datetime
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Self

from yarl import URL

from reqpool.errors import ConfigurationError

DEFAULT_TIMEOUT_S: float = 30.0
DEFAULT_POLL_INTERVAL: datetime.timedelta = datetime.timedelta(seconds=3)


@dataclass(frozen=True)
class TransportConfig:
    """Per-call transport options.

    ``None`` means "not set", so that a descriptor-level config only overrides
    what it actually names when merged over the defaults.
    """

    headers: Dict[str, str] = field(default_factory=dict)
    timeout_s: float | None = None
    verify_ssl: bool | None = None
    request_kwargs: Dict[str, Any] = field(default_factory=dict)

    def merged_with(self: Self, override: "TransportConfig | None") -> "TransportConfig":
        if override is None:
            return self
        return replace(
            self,
            headers={**self.headers, **override.headers},
            timeout_s=override.timeout_s if override.timeout_s is not None else self.timeout_s,
            verify_ssl=override.verify_ssl if override.verify_ssl is not None else self.verify_ssl,
            request_kwargs={**self.request_kwargs, **override.request_kwargs},
        )


@dataclass(frozen=True)
class Settings:
    poll_interval: datetime.timedelta = DEFAULT_POLL_INTERVAL
    timeout_s: float = DEFAULT_TIMEOUT_S
    max_poll_attempts: int | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = os.environ) -> "Settings":
        """Read defaults from ``REQPOOL_*`` environment variables.

        ``REQPOOL_POLL_INTERVAL_MS``, ``REQPOOL_TIMEOUT_S`` and
        ``REQPOOL_MAX_POLL_ATTEMPTS`` are all optional; missing variables keep
        the dataclass defaults.
        """
        kwargs: Dict[str, Any] = {}

        interval_ms = environ.get("REQPOOL_POLL_INTERVAL_MS")
        if interval_ms:
            kwargs["poll_interval"] = datetime.timedelta(milliseconds=_positive(interval_ms, int, "REQPOOL_POLL_INTERVAL_MS"))

        timeout_s = environ.get("REQPOOL_TIMEOUT_S")
        if timeout_s:
            kwargs["timeout_s"] = _positive(timeout_s, float, "REQPOOL_TIMEOUT_S")

        max_attempts = environ.get("REQPOOL_MAX_POLL_ATTEMPTS")
        if max_attempts:
            kwargs["max_poll_attempts"] = _positive(max_attempts, int, "REQPOOL_MAX_POLL_ATTEMPTS")

        return cls(**kwargs)


def _positive(raw: str, kind: type, name: str) -> Any:
    try:
        value = kind(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a {kind.__name__}, got {raw!r}") from e
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{name} must be a finite positive number, got {raw!r}")
    return value


def validate_target(target: str | URL) -> URL:
    try:
        url = URL(str(target))
    except ValueError as e:
        raise ConfigurationError(f"URL not valid: {str(target)!r}") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(f"URL not valid, expected an absolute http(s) URL: {str(target)!r}")
    return url


def join_target(base: str | URL, path: str) -> str:
    base_str = str(base)
    if base_str.endswith("/") and path.startswith("/"):
        base_str = base_str[:-1]
    return f"{base_str}{path}"
