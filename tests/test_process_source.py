"""Tests for the psutil-backed process source, run against this test process."""

import os
import subprocess
import sys

import psutil
import pytest

from probex.collector.process_source import ProcessSource
from probex.errors import ProcessNotFound
from probex.exporter import Exporter
from probex.exporters import process


def _dead_pid() -> int:
    proc = subprocess.Popen([sys.executable, "-c", "pass"])
    proc.wait()
    return proc.pid


def test_snapshot_of_current_process():
    source = ProcessSource(os.getpid())
    snap = source.fetch()

    assert snap.get("pid").number() == os.getpid()
    assert snap.get("num_threads").number() >= 1
    assert snap.path("memory_info", "rss").number() > 0
    assert snap.get("cpu_seconds").number() >= 0
    assert snap.get("uptime").number() >= 0
    assert snap.get("start_time").number() > 0


def test_exporter_table_over_current_process():
    exporter = Exporter(ProcessSource(os.getpid()), process.FIELDS, "process_exporter")
    values = {(s.descriptor.name, s.label_values): s.value for s in exporter.scrape()}

    assert values[("resident_memory_bytes", ())] > 0
    assert values[("num_threads", ())] >= 1
    assert ("connections", ("total",)) in values
    assert values[("scrape_failures", ())] == 0


def test_nonexistent_pid_raises():
    pid = _dead_pid()
    if psutil.pid_exists(pid):
        pytest.skip("pid was reused")
    with pytest.raises(ProcessNotFound) as info:
        ProcessSource(pid).fetch()
    assert info.value.pid == pid


def test_nonexistent_pid_counts_as_failure():
    pid = _dead_pid()
    if psutil.pid_exists(pid):
        pytest.skip("pid was reused")
    exporter = Exporter(ProcessSource(pid), process.FIELDS, "process_exporter")
    values = {(s.descriptor.name, s.label_values): s.value for s in exporter.scrape()}

    assert values[("scrape_failures", ())] == 1
    assert values[("resident_memory_bytes", ())] == 0


def test_invalid_pid_rejected():
    with pytest.raises(ValueError):
        ProcessSource(0)


def test_name_includes_pid():
    assert str(os.getpid()) in ProcessSource(os.getpid()).name()
