"""
Source adapter for a local process's resource usage, via psutil.

Produces the same loosely-typed shape the JSON status pages use, so the
process exporter goes through the normal field-table path. Fields psutil
can't read for this process (permissions, platform) are simply left out
and publish as zero.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import psutil

from probex.collector.base import SourceAdapter
from probex.errors import ProcessNotFound
from probex.mapping.value import Value

log = logging.getLogger(__name__)


class ProcessSource(SourceAdapter):

    def __init__(self, pid: int):
        if pid <= 0:
            raise ValueError(f"invalid pid {pid}")
        self._pid = pid
        # Kept between fetches so cpu_percent() has a previous reading to diff against
        self._proc: Optional[psutil.Process] = None

    @property
    def pid(self) -> int:
        return self._pid

    def _process(self) -> psutil.Process:
        if self._proc is None or not self._proc.is_running():
            try:
                self._proc = psutil.Process(self._pid)
                # Prime the CPU counter; the first real reading comes next cycle
                self._proc.cpu_percent(interval=None)
            except psutil.NoSuchProcess as exc:
                self._proc = None
                raise ProcessNotFound(self._pid) from exc
        return self._proc

    def fetch(self) -> Value:
        proc = self._process()
        try:
            with proc.oneshot():
                snapshot = self._read(proc)
        except psutil.NoSuchProcess as exc:
            self._proc = None
            raise ProcessNotFound(self._pid) from exc
        return Value(snapshot)

    def _read(self, proc: psutil.Process) -> Dict[str, Any]:
        data: Dict[str, Any] = {"pid": proc.pid}

        _try(data, "cpu_percent", lambda: proc.cpu_percent(interval=None))
        _try(data, "memory_percent", proc.memory_percent)
        _try(data, "num_threads", proc.num_threads)

        times = _call(proc.cpu_times)
        if times is not None:
            data["cpu_times"] = {"user": times.user, "system": times.system}
            data["cpu_seconds"] = times.user + times.system

        mem = _call(proc.memory_info)
        if mem is not None:
            data["memory_info"] = {"rss": mem.rss, "vms": mem.vms}

        create_time = _call(proc.create_time)
        if create_time is not None:
            data["start_time"] = create_time
            data["uptime"] = max(0.0, time.time() - create_time)

        if hasattr(proc, "num_fds"):
            _try(data, "num_fds", proc.num_fds)
        if hasattr(proc, "rlimit") and hasattr(psutil, "RLIMIT_NOFILE"):
            limits = _call(lambda: proc.rlimit(psutil.RLIMIT_NOFILE))
            if limits is not None:
                data["max_fds"] = limits[0]

        # psutil 6 renamed connections() to net_connections()
        get_conns = getattr(proc, "net_connections", None) or proc.connections
        conns = _call(lambda: get_conns(kind="inet"))
        if conns is not None:
            data["connections"] = [{"status": c.status} for c in conns]

        return data

    def name(self) -> str:
        return f"process {self._pid}"


def _call(fn):
    try:
        return fn()
    except (psutil.AccessDenied, psutil.ZombieProcess, NotImplementedError) as exc:
        log.debug("psutil: %s unavailable: %s", getattr(fn, "__name__", fn), exc)
        return None


def _try(data: Dict[str, Any], key: str, fn):
    value = _call(fn)
    if value is not None:
        data[key] = value
