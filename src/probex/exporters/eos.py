"""EOS mount exporter: is the path there and can we write to it?"""

from probex.collector.path_probe import PathProbeSource, PathStatus
from probex.exporters.base import ExporterDefinition
from probex.mapping.fields import gauge

FIELDS = (
    gauge("status", "status",
          "EOS path status: " + ", ".join(f"{s.value}={s.name.lower()}" for s in PathStatus)),
)


def build_source(target):
    return PathProbeSource(target.path)


DEFINITION = ExporterDefinition(
    key="eos",
    description="Writability of an EOS path",
    namespace="eos",
    address=":18000",
    fields=FIELDS,
    build_source=build_source,
)
