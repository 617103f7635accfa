"""Generic HTTP exporter: publishes only the status code of a page."""

from probex.collector.credentials import CredentialProvider
from probex.collector.http_source import HTTPSource
from probex.errors import BadStatus
from probex.exporters.base import ExporterDefinition
from probex.mapping.fields import gauge

FIELDS = (
    gauge("status", "status", "HTTP status code of the scraped page, 0 if unreachable"),
)


def build_source(target):
    return HTTPSource(
        target.uri,
        timeout=target.timeout,
        content_type=target.content_type,
        user_agent=target.user_agent,
        credentials=CredentialProvider(target.renew_interval, target.proxyfile),
        status_only=True,
    )


def status_fallback(error):
    if isinstance(error, BadStatus):
        return {"status": error.status_code}
    return {"status": 0}


DEFINITION = ExporterDefinition(
    key="http",
    description="Status code of any HTTP(S) endpoint",
    namespace="http",
    address=":18000",
    fields=FIELDS,
    build_source=build_source,
    fallback=status_fallback,
)
