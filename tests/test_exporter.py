"""
Tests for the publisher: locking, failure handling and what ends up in
the exposition output.
"""

import threading
import time

from prometheus_client import CollectorRegistry, generate_latest

from probex.collector.base import SourceAdapter
from probex.collector.prometheus_parser import get_value, parse_exposition
from probex.errors import BadStatus, CommandFailed, ParseError
from probex.exporter import Exporter, ScrapeState
from probex.exporters import http, quota, wmcore
from probex.mapping.fields import gauge
from probex.mapping.value import Value


class _FakeSource(SourceAdapter):
    """Returns canned snapshots, or raises whatever it's given."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0
        self.closed = False

    def fetch(self) -> Value:
        self.calls += 1
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return Value.wrap(result)

    def name(self) -> str:
        return "fake"

    def close(self):
        self.closed = True


class _BlockingSource(SourceAdapter):
    """First fetch blocks until released; records when each fetch starts."""

    def __init__(self):
        self.release = threading.Event()
        self.first_started = threading.Event()
        self.starts = []
        self._lock = threading.Lock()

    def fetch(self) -> Value:
        with self._lock:
            self.starts.append(time.monotonic())
            first = len(self.starts) == 1
        if first:
            self.first_started.set()
            self.release.wait(5)
        return Value({"uptime": len(self.starts)})

    def name(self) -> str:
        return "blocking"


def _exposition(exporter):
    registry = CollectorRegistry()
    registry.register(exporter)
    return parse_exposition(generate_latest(registry).decode())


def _values(samples):
    return {(s.descriptor.name, s.label_values): s.value for s in samples}


def test_successful_scrape_maps_fields_and_reports_no_failures():
    exporter = Exporter(_FakeSource({"uptime": 10, "cpu_percent": 5.5}), wmcore.FIELDS, "wmcore")
    values = _values(exporter.scrape())

    assert values[("uptime", ())] == 10.0
    assert values[("cpu_percent", ())] == 5.5
    assert values[("scrape_failures", ())] == 0.0
    assert exporter.failures == 0
    assert exporter.state is ScrapeState.IDLE


def test_bad_status_publishes_zeros_and_counts_failure():
    source = _FakeSource(BadStatus(503, "service unavailable"))
    exporter = Exporter(source, wmcore.FIELDS, "wmcore")
    values = _values(exporter.scrape())

    assert values[("uptime", ())] == 0.0
    assert values[("memory_percent", ())] == 0.0
    assert values[("scrape_failures", ())] == 1.0


def test_failure_counter_accumulates_across_cycles():
    source = _FakeSource(ParseError("bad"), ParseError("bad"), {"uptime": 3})
    exporter = Exporter(source, wmcore.FIELDS, "wmcore")

    exporter.scrape()
    exporter.scrape()
    values = _values(exporter.scrape())

    assert exporter.failures == 2
    assert values[("scrape_failures", ())] == 2.0
    assert values[("uptime", ())] == 3.0


def test_command_failure_publishes_only_the_failure_counter():
    source = _FakeSource(CommandFailed("/bin/bash quota.sh env.sh", 1, "boom"))
    exporter = Exporter(source, quota.FIELDS, "openstack")
    samples = exporter.scrape()

    assert [s.descriptor.name for s in samples] == ["scrape_failures"]
    assert samples[0].value == 1.0


def test_command_failure_keeps_serving_afterwards():
    source = _FakeSource(CommandFailed("quota.sh", 1), {"cpus_total": 64, "cpus_used": 12})
    exporter = Exporter(source, quota.FIELDS, "openstack")

    exporter.scrape()
    values = _values(exporter.scrape())

    assert values[("cpus_total", ())] == 64.0
    assert values[("scrape_failures", ())] == 1.0


def test_http_status_fallback_reports_the_status_code():
    exporter = Exporter(_FakeSource(BadStatus(503, "service unavailable")), http.FIELDS, "http",
                        fallback=http.status_fallback)
    assert _values(exporter.scrape())[("status", ())] == 503.0


def test_unexpected_mapper_error_is_counted_not_raised():
    def _broken(node):
        raise RuntimeError("mapper bug")

    fields = (gauge("x", "x", extract=_broken),)
    exporter = Exporter(_FakeSource({"x": 1}), fields, "ns")

    samples = exporter.scrape()
    # the fallback snapshot hits the same broken extractor, so only the counter is left
    assert [s.descriptor.name for s in samples] == ["scrape_failures"]
    assert samples[0].value == 1.0
    assert exporter.state is ScrapeState.IDLE

    families = _exposition(exporter)
    assert get_value(families, "ns_scrape_failures_total") == 2.0


def test_concurrent_pulls_do_not_overlap():
    source = _BlockingSource()
    exporter = Exporter(source, wmcore.FIELDS, "wmcore")
    results = []

    first = threading.Thread(target=lambda: results.append(exporter.scrape()))
    first.start()
    assert source.first_started.wait(5)

    second = threading.Thread(target=lambda: results.append(exporter.scrape()))
    second.start()
    time.sleep(0.2)

    # The second pull is queued on the lock, its fetch hasn't started
    assert len(source.starts) == 1
    assert exporter.state is ScrapeState.SCRAPING

    source.release.set()
    first.join(5)
    second.join(5)

    assert len(source.starts) == 2
    assert len(results) == 2


def test_collect_produces_exposition_with_failure_counter():
    exporter = Exporter(_FakeSource({"uptime": 42, "connections": [["tcp", "ESTABLISHED"]]}),
                        wmcore.FIELDS, "wmcore")
    families = _exposition(exporter)

    assert get_value(families, "wmcore_uptime") == 42.0
    assert get_value(families, "wmcore_connections", state="established") == 1.0
    assert get_value(families, "wmcore_scrape_failures_total") == 0.0
    failures = [fam for fam in families.values()
                if any(s.name == "wmcore_scrape_failures_total" for s in fam.samples)]
    assert len(failures) == 1
    assert failures[0].metric_type == "counter"


def test_registering_does_not_fetch():
    source = _FakeSource({"uptime": 1})
    exporter = Exporter(source, wmcore.FIELDS, "wmcore")

    registry = CollectorRegistry()
    registry.register(exporter)

    assert source.calls == 0
    generate_latest(registry)
    assert source.calls == 1


def test_namespace_override_and_close():
    source = _FakeSource({"uptime": 1})
    exporter = Exporter(source, wmcore.FIELDS, "custom")
    families = _exposition(exporter)

    assert get_value(families, "custom_uptime") == 1.0
    exporter.close()
    assert source.closed
