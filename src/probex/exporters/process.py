"""Resource usage of one local process, looked up by pid."""

from probex.collector.process_source import ProcessSource
from probex.exporters.base import ExporterDefinition
from probex.mapping.fields import connection_states, counter, gauge

FIELDS = (
    counter("cpu_seconds", "cpu_seconds", "Total user and system CPU time in seconds"),
    gauge("cpu_percent", "cpu_percent", "CPU percent since the previous scrape"),
    gauge("memory_percent", "memory_percent", "Resident memory as percent of physical memory"),
    gauge(("memory_info", "rss"), "resident_memory_bytes", "Resident memory size in bytes"),
    gauge(("memory_info", "vms"), "virtual_memory_bytes", "Virtual memory size in bytes"),
    gauge("num_threads", "num_threads", "Number of OS threads"),
    gauge("num_fds", "open_fds", "Number of open file descriptors"),
    gauge("max_fds", "max_fds", "Maximum number of open file descriptors"),
    gauge("start_time", "start_time_seconds", "Start time of the process since unix epoch in seconds"),
    gauge("uptime", "uptime_seconds", "Seconds since the process started"),
    gauge("connections", "connections", "Internet connections by state",
          labels=("state",), extract=connection_states),
)


def build_source(target):
    return ProcessSource(target.pid)


DEFINITION = ExporterDefinition(
    key="process",
    description="Resource usage of a local process",
    namespace="process_exporter",
    address=":17000",
    fields=FIELDS,
    build_source=build_source,
)
