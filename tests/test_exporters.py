"""Tests for the exporter catalogue against the fake status pages."""

import os

import pytest

from probex.collector.command_source import CommandSource
from probex.collector.http_source import HTTPSource
from probex.collector.path_probe import PathProbeSource
from probex.collector.process_source import ProcessSource
from probex.errors import BadStatus, CommandFailed, TransportError
from probex.exporters import REGISTRY, cpy, das2go, get_definition, http, reqmgr
from probex.exporters.base import zero_fallback
from probex.mapping.fields import map_snapshot
from probex.metrics import ScrapeTarget
from probex.mock import fake_status_server


def _values(snapshot, module):
    ns = module.DEFINITION.namespace
    return {
        (s.descriptor.name, s.label_values): s.value
        for s in map_snapshot(snapshot, module.FIELDS, ns)
    }


def test_registry_keys_and_defaults():
    assert set(REGISTRY) == {"http", "cpy", "das2go", "reqmgr", "wmcore", "process", "quota", "eos"}
    assert REGISTRY["das2go"].address == ":18217"
    assert REGISTRY["reqmgr"].address == ":18240"
    assert REGISTRY["process"].namespace == "process_exporter"
    assert REGISTRY["quota"].namespace == "openstack"
    for definition in REGISTRY.values():
        assert definition.endpoint == "/metrics"


def test_get_definition_unknown_key():
    with pytest.raises(KeyError, match="wmcore"):
        get_definition("nope")


def test_metric_names_unique_per_exporter():
    for definition in REGISTRY.values():
        names = [f.name for f in definition.fields]
        assert len(names) == len(set(names)), definition.key
        assert "scrape_failures" not in names


def test_build_source_per_kind(tmp_path):
    target = ScrapeTarget(uri="http://localhost/status", pid=os.getpid(),
                          script="q.sh", env_file="env.sh", path=str(tmp_path))

    assert isinstance(REGISTRY["wmcore"].build_source(target), HTTPSource)
    assert isinstance(REGISTRY["process"].build_source(target), ProcessSource)
    assert isinstance(REGISTRY["eos"].build_source(target), PathProbeSource)

    quota_source = REGISTRY["quota"].build_source(target)
    assert isinstance(quota_source, CommandSource)
    assert quota_source.argv == ["/bin/bash", "q.sh", "env.sh"]


def test_json_exporters_ask_for_json():
    target = ScrapeTarget(uri="http://localhost/status", user_agent="probex")
    source = REGISTRY["cpy"].build_source(target)
    assert source.headers["Accept"] == "application/json"
    assert source.headers["User-Agent"] == "probex"


def test_http_exporter_sends_configured_content_type():
    source = http.build_source(ScrapeTarget(uri="http://localhost/", content_type="text/html"))
    assert source.headers["Accept"] == "text/html"


def test_fallbacks():
    assert zero_fallback(TransportError("down")) == {}
    assert zero_fallback(CommandFailed("quota.sh", 1)) is None
    assert http.status_fallback(BadStatus(404)) == {"status": 404}
    assert http.status_fallback(TransportError("down")) == {"status": 0}


def test_das2go_page():
    values = _values(fake_status_server.das2go_status(), das2go)

    assert values[("memory_percent", ())] == 62.5
    assert values[("memstats_tot_alloc", ())] == 900e6
    assert values[("load15", ())] == 0.9
    assert values[("num_threads", ())] == 12
    assert values[("open_files", ())] >= 3
    assert values[("connections", ("total",))] == 3
    assert values[("connections", ("established",))] == 1
    assert values[("connections", ("listen",))] == 1
    assert ("cores_percent", ("core-3",)) in values


def test_reqmgr_page_nested_under_result():
    values = _values(fake_status_server.reqmgr_status(), reqmgr)

    assert values[("rss", ())] == 250_000_000
    assert values[("cpu_user", ())] == 120.5
    assert values[("uptime", ())] >= 0
    assert values[("time", ())] > 0


def test_reqmgr_empty_result_is_all_zero():
    values = _values({"result": []}, reqmgr)
    assert all(v == 0 for v in values.values())


def test_cherrypy_page_with_variable_section_names():
    values = _values(fake_status_server.cherrypy_status(), cpy)

    assert values[("threads", ())] == 10
    assert values[("threads_idle", ())] == 8
    assert values[("thread_requests", ("CP Server Thread-4",))] == 40
    assert values[("bytes_read_per_request", ())] == 250.0
    # empty per-request table contributes no samples
    assert not [k for k in values if k[0] == "request_bytes_read"]
