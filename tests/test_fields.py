"""Tests for field tables and map_snapshot()."""

import random

from probex.exporters import das2go, wmcore
from probex.mapping.fields import (
    CONNECTION_STATES,
    classify_connections,
    counter,
    gauge,
    map_snapshot,
    mean,
    per_core,
    per_key,
)
from probex.mapping.value import Value
from probex.metrics import MetricKind


def _by_name(samples):
    out = {}
    for s in samples:
        out.setdefault(s.descriptor.name, []).append(s)
    return out


def _scalar(samples, name):
    found = _by_name(samples)[name]
    assert len(found) == 1
    return found[0].value


def test_missing_field_publishes_zero():
    samples = map_snapshot({}, wmcore.FIELDS, "wmcore")
    assert _scalar(samples, "memory_percent") == 0.0
    assert _scalar(samples, "uptime") == 0.0


def test_every_scalar_field_yields_a_sample_on_empty_input():
    samples = map_snapshot({}, wmcore.FIELDS, "wmcore")
    names = _by_name(samples)
    for fld in wmcore.FIELDS:
        assert fld.name in names


def test_type_mismatch_publishes_zero():
    snapshot = {"memory_percent": "high", "uptime": [1, 2], "cpu_percent": {"x": 1}, "num_fds": True}
    samples = map_snapshot(snapshot, wmcore.FIELDS, "wmcore")
    assert _scalar(samples, "memory_percent") == 0.0
    assert _scalar(samples, "uptime") == 0.0
    assert _scalar(samples, "cpu_percent") == 0.0
    assert _scalar(samples, "num_fds") == 0.0


def test_non_object_snapshot_does_not_raise():
    for snapshot in (None, [], "text", 42):
        samples = map_snapshot(snapshot, wmcore.FIELDS, "wmcore")
        assert _scalar(samples, "uptime") == 0.0


def test_round_trip_literal_snapshot():
    snapshot = {"uptime": 120.5, "cpu_percent": 42.0, "memory_percent": 17.3}
    samples = map_snapshot(snapshot, wmcore.FIELDS, "wmcore")

    assert _scalar(samples, "uptime") == 120.5
    assert _scalar(samples, "cpu_percent") == 42.0
    assert _scalar(samples, "memory_percent") == 17.3

    expected = {"uptime", "cpu_percent", "memory_percent"}
    for s in samples:
        if s.descriptor.name not in expected:
            assert s.value == 0.0, s


def test_per_core_and_mean():
    samples = map_snapshot({"CPU": [10.0, 20.0, 30.0]}, das2go.FIELDS, "das2go")
    cores = _by_name(samples)["cores_percent"]

    assert [(s.labels["cores"], s.value) for s in cores] == [
        ("core-0", 10.0),
        ("core-1", 20.0),
        ("core-2", 30.0),
    ]
    assert _scalar(samples, "cpu_percent") == 20.0


def test_mean_of_empty_list_is_zero():
    assert mean(Value([])) == [((), 0.0)]
    assert mean(Value(None)) == [((), 0.0)]
    assert per_core(Value(None)) == []


def test_per_key_labels_by_entry_key():
    node = Value({"t1": {"Requests": 3}, "t2": {"Requests": "many"}})
    assert per_key("Requests")(node) == [(("t1",), 3.0), (("t2",), 0.0)]


def test_connection_states_accept_list_and_object_entries():
    entries = [
        Value(["tcp", "1.2.3.4:80", "5.6.7.8:1000", "ESTABLISHED"]),
        Value({"status": "LISTEN"}),
        Value({"status": "TIME_WAIT"}),
        Value({"fd": 3}),
    ]
    counts = classify_connections(entries)
    assert counts == {"total": 4, "established": 1, "listen": 1, "other": 2}


def test_connection_classification_ignores_order():
    conns = (
        [["tcp", "a", "b", "ESTABLISHED"]] * 5
        + [["tcp", "a", "", "LISTEN"]] * 2
        + [["tcp", "a", "b", "CLOSE_WAIT"]] * 3
    )
    rng = random.Random(7)
    baseline = classify_connections([Value(c) for c in conns])

    for _ in range(20):
        shuffled = list(conns)
        rng.shuffle(shuffled)
        assert classify_connections([Value(c) for c in shuffled]) == baseline


def test_connections_metric_emits_every_state():
    samples = map_snapshot({"connections": [["tcp", "LISTEN"]]}, wmcore.FIELDS, "wmcore")
    conns = {s.labels["state"]: s.value for s in _by_name(samples)["connections"]}
    assert tuple(conns) == CONNECTION_STATES
    assert conns == {"total": 1.0, "established": 0.0, "listen": 1.0, "other": 0.0}


def test_descriptor_names_and_kinds():
    fields = (gauge("a", "first"), counter(("b", "c"), "second", "Second thing"))
    samples = map_snapshot({"a": 1, "b": {"c": 2}}, fields, "ns")

    assert [s.descriptor.fqname for s in samples] == ["ns_first", "ns_second"]
    assert samples[0].descriptor.kind is MetricKind.GAUGE
    assert samples[1].descriptor.kind is MetricKind.COUNTER
    assert samples[0].descriptor.help == "first"
    assert samples[1].descriptor.help == "Second thing"
