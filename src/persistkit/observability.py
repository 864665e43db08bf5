"""Structured event logging and StatsD metrics for the data stores."""

from __future__ import annotations

import json
import logging
import socket
import threading
from datetime import datetime, timezone
from typing import Any, Mapping

from persistkit.settings import Settings, get_settings

_LOGGER = logging.getLogger("persistkit.observability")
_STATSD_LOCK = threading.Lock()
_SHARED_STATSD: "_StatsdClient | None" = None

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(settings: Settings | None = None, *, level: str | None = None) -> None:
    """Install the process-wide log format at the configured level."""

    resolved = settings or get_settings()
    level_name = (level or resolved.log_level or "INFO").upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)


class _StatsdClient:
    """Fire-and-forget UDP sender; a lost datagram is never an error for the caller."""

    def __init__(self, host: str, port: int, prefix: str) -> None:
        self.prefix = prefix
        self._address = (host, port)
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def send(self, metric: str, value: float, metric_type: str, tags: Mapping[str, str] | None) -> None:
        line = format_statsd_line(self.prefix, metric, value, metric_type=metric_type, tags=tags)
        try:
            self._socket.sendto(line.encode("utf-8"), self._address)
        except OSError:  # pragma: no cover - depends on the network
            _LOGGER.debug("StatsD send failed for metric %s", metric, exc_info=True)


class Observability:
    """Emit data store events to the log and counters/timings to StatsD.

    Metrics calls are no-ops when no StatsD host is configured.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        component: str | None = None,
        statsd: _StatsdClient | None = None,
    ) -> None:
        self.settings = settings
        self.component = component or "core"
        self._structured_logging = bool(settings.observability.structured_logging)
        self._statsd = statsd

    def emit_event(self, event: str, **fields: Any) -> None:
        payload = {
            "event": event,
            "component": self.component,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **fields,
        }
        if self._structured_logging:
            _LOGGER.info(json.dumps(payload, default=str))
        else:
            _LOGGER.info("%s | %s", event, payload)

    def increment(self, metric: str, *, value: float = 1.0, tags: Mapping[str, str] | None = None) -> None:
        if self._statsd is not None:
            self._statsd.send(metric, value, "c", tags)

    def record_timing(self, metric: str, value_ms: float, *, tags: Mapping[str, str] | None = None) -> None:
        if self._statsd is not None:
            self._statsd.send(metric, value_ms, "ms", tags)


def get_observability(*, component: str | None = None, settings: Settings | None = None) -> Observability:
    """Return an :class:`Observability` sharing the process-wide StatsD socket."""

    resolved = settings or get_settings()
    return Observability(settings=resolved, component=component, statsd=_shared_statsd(resolved))


def reset_observability_cache() -> None:
    """Forget the shared StatsD client so the next lookup rereads settings (used in tests)."""

    global _SHARED_STATSD
    with _STATSD_LOCK:
        _SHARED_STATSD = None


def _shared_statsd(settings: Settings) -> _StatsdClient | None:
    global _SHARED_STATSD
    with _STATSD_LOCK:
        if _SHARED_STATSD is None and settings.observability.statsd_host:
            _SHARED_STATSD = _StatsdClient(
                settings.observability.statsd_host,
                settings.observability.statsd_port,
                settings.observability.statsd_prefix,
            )
        return _SHARED_STATSD


def format_statsd_line(
    prefix: str,
    metric: str,
    value: float,
    *,
    metric_type: str,
    tags: Mapping[str, str] | None = None,
) -> str:
    """Render one DogStatsD datagram, e.g. ``persistkit.datastore.save:12.5|ms|#store:Db``."""

    name = f"{prefix}.{metric}" if prefix else metric
    number = f"{value:.6f}".rstrip("0").rstrip(".") or "0"
    line = f"{name}:{number}|{metric_type}"
    tag_block = ",".join(f"{key}:{val}" for key, val in sorted((tags or {}).items()) if val is not None)
    return f"{line}|#{tag_block}" if tag_block else line


__all__ = [
    "Observability",
    "configure_logging",
    "format_statsd_line",
    "get_observability",
    "reset_observability_cache",
]
