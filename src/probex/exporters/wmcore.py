"""WMCore service exporter for flat psutil-style status pages."""

from probex.collector.credentials import CredentialProvider
from probex.collector.http_source import JSON, HTTPSource
from probex.exporters.base import ExporterDefinition
from probex.mapping.fields import connection_states, gauge

FIELDS = (
    gauge("uptime", "uptime", "Current uptime in seconds"),
    gauge("cpu_percent", "cpu_percent", "CPU percent of the server"),
    gauge("memory_percent", "memory_percent", "Memory usage percent"),
    gauge("num_threads", "num_threads", "Number of threads"),
    gauge("num_fds", "num_fds", "Number of file descriptors"),
    gauge("connections", "connections", "Connections by state",
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
    key="wmcore",
    description="WMCore service status page",
    namespace="wmcore",
    address=":18000",
    fields=FIELDS,
    build_source=build_source,
)
