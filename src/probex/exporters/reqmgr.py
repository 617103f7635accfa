"""ReqMgr exporter. The status page wraps psutil output as result[0].server."""

from probex.collector.credentials import CredentialProvider
from probex.collector.http_source import JSON, HTTPSource
from probex.exporters.base import ExporterDefinition
from probex.mapping.fields import counter, gauge

SERVER = ("result", 0, "server")
MEM = SERVER + ("memory_full_info",)
CPU = SERVER + ("cpu_times",)

FIELDS = (
    gauge(SERVER + ("uptime",), "uptime", "Current uptime in seconds"),
    gauge(SERVER + ("memory_percent",), "memory_percent", "Memory usage percent"),
    gauge(SERVER + ("cpu_percent",), "cpu_percent", "CPU percent of the server"),
    gauge(SERVER + ("cpu_num",), "num_cpu", "CPU the process last ran on"),
    gauge(SERVER + ("time",), "time", "Timestamp of the metric"),

    gauge(MEM + ("vms",), "vms", "Virtual memory size in bytes"),
    gauge(MEM + ("rss",), "rss", "Resident set size in bytes"),
    gauge(MEM + ("swap",), "swap", "Swapped out memory in bytes"),
    gauge(MEM + ("pss",), "pss", "Proportional set size in bytes"),
    gauge(MEM + ("uss",), "uss", "Unique set size in bytes"),

    counter(CPU + ("system",), "cpu_system", "CPU seconds in system mode"),
    counter(CPU + ("user",), "cpu_user", "CPU seconds in user mode"),
    counter(CPU + ("children_system",), "cpu_children_system", "CPU seconds of children in system mode"),
    counter(CPU + ("children_user",), "cpu_children_user", "CPU seconds of children in user mode"),
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
    key="reqmgr",
    description="ReqMgr server status page",
    namespace="reqmgr",
    address=":18240",
    fields=FIELDS,
    build_source=build_source,
)
