"""Tests for observability helpers."""

from __future__ import annotations

import json
import logging
import socket

import pytest

from persistkit.observability import Observability, format_statsd_line, get_observability
from persistkit.settings import Settings


def test_format_statsd_line_with_sorted_tags() -> None:
    line = format_statsd_line("persistkit", "datastore.save", 12.5, metric_type="ms", tags={"store": "Db", "entity": "Product"})

    assert line == "persistkit.datastore.save:12.5|ms|#entity:Product,store:Db"


def test_format_statsd_line_without_prefix_or_tags() -> None:
    assert format_statsd_line("", "datastore.load", 1.0, metric_type="c") == "datastore.load:1|c"


def test_structured_events_are_json(caplog: pytest.LogCaptureFixture) -> None:
    settings = Settings(observability={"structured_logging": True})
    obs = Observability(settings=settings, component="datastore")

    with caplog.at_level(logging.INFO, logger="persistkit.observability"):
        obs.emit_event("datastore.save", entity="Product", count=3)

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["event"] == "datastore.save"
    assert payload["component"] == "datastore"
    assert payload["count"] == 3


def test_metrics_are_noops_without_statsd_host() -> None:
    obs = get_observability(component="datastore", settings=Settings(observability={"statsd_host": None}))

    obs.increment("datastore.load")
    obs.record_timing("datastore.load", 3.0)


def test_metrics_reach_the_configured_statsd_host() -> None:
    receiver = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    receiver.bind(("127.0.0.1", 0))
    receiver.settimeout(2.0)
    port = receiver.getsockname()[1]
    settings = Settings(observability={"statsd_host": "127.0.0.1", "statsd_port": port, "statsd_prefix": "catalog"})

    try:
        obs = get_observability(component="datastore", settings=settings)
        obs.increment("datastore.save.errors", tags={"store": "Db", "entity": "Product"})
        obs.record_timing("datastore.load.duration_ms", 4.25)

        first = receiver.recv(1024).decode("utf-8")
        second = receiver.recv(1024).decode("utf-8")
    finally:
        receiver.close()

    assert first == "catalog.datastore.save.errors:1|c|#entity:Product,store:Db"
    assert second == "catalog.datastore.load.duration_ms:4.25|ms"


def test_statsd_client_is_shared_between_components() -> None:
    settings = Settings(observability={"statsd_host": "127.0.0.1", "statsd_port": 9})

    first = get_observability(component="datastore", settings=settings)
    second = get_observability(component="cli", settings=settings)

    assert first._statsd is not None
    assert first._statsd is second._statsd
