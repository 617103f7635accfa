"""DAS Go server exporter, reading its /das/status JSON page."""

from probex.collector.credentials import CredentialProvider
from probex.collector.http_source import JSON, HTTPSource
from probex.exporters.base import ExporterDefinition
from probex.mapping.fields import connection_states, count, counter, gauge, mean, per_core

VIRTUAL = ("Memory", "Virtual")
MEMSTATS = "MemStats"
LOAD = "Load"

FIELDS = (
    counter("getCalls", "get_calls", "Total number of GET HTTP calls"),
    counter("postCalls", "post_calls", "Total number of POST HTTP calls"),
    counter("getRequests", "get_requests", "Total number of GET requests"),
    counter("postRequests", "post_requests", "Total number of POST requests"),
    gauge("Uptime", "uptime", "Current uptime in seconds"),

    gauge(VIRTUAL + ("usedPercent",), "memory_percent", "Virtual memory usage percent"),
    gauge(VIRTUAL + ("total",), "memory_total", "Total virtual memory"),
    gauge(VIRTUAL + ("free",), "memory_free", "Free virtual memory"),
    gauge(VIRTUAL + ("used",), "memory_used", "Used virtual memory"),
    gauge(("Memory", "Swap", "usedPercent"), "swap_percent", "Swap usage percent"),

    gauge((MEMSTATS, "Sys"), "memstats_sys", "Total bytes of memory obtained from the OS"),
    gauge((MEMSTATS, "Alloc"), "memstats_alloc", "Bytes of allocated heap objects"),
    gauge((MEMSTATS, "TotalAlloc"), "memstats_tot_alloc", "Cumulative bytes allocated for heap objects"),
    gauge((MEMSTATS, "HeapSys"), "memstats_heap_sys", "Bytes of heap memory obtained from the OS"),
    gauge((MEMSTATS, "StackSys"), "memstats_stack_sys", "Bytes of stack memory obtained from the OS"),

    gauge("CPU", "cpu_percent", "Mean CPU percent across cores", extract=mean),
    gauge("CPU", "cores_percent", "CPU percent per core", labels=("cores",), extract=per_core),

    gauge("NThreads", "num_threads", "Number of threads"),
    gauge("NGo", "num_go_routines", "Number of goroutines"),
    gauge((LOAD, "load1"), "load1", "Load average in last 1m"),
    gauge((LOAD, "load5"), "load5", "Load average in last 5m"),
    gauge((LOAD, "load15"), "load15", "Load average in last 15m"),
    gauge("OpenFiles", "open_files", "Number of open files", extract=count),
    gauge("Connections", "connections", "Server connections by state",
          labels=("state",), extract=connection_states),
)


def build_source(target):
    return HTTPSource(
        target.uri,
        timeout=target.timeout,
        content_type=target.content_type or JSON,
        user_agent=target.user_agent,
        credentials=CredentialProvider(target.renew_interval, target.proxyfile),
    )


DEFINITION = ExporterDefinition(
    key="das2go",
    description="DAS Go server status page",
    namespace="das2go",
    address=":18217",
    fields=FIELDS,
    build_source=build_source,
    default_uri="http://localhost:8217/das/status",
)
