"""OpenStack project quota exporter, fed by an external quota script."""

from probex.collector.command_source import CommandSource
from probex.exporters.base import ExporterDefinition
from probex.mapping.fields import gauge

DEFAULT_SCRIPT = "/data/cmsweb-exporters/quota.sh"
DEFAULT_ENV = "/etc/secrets/keystone_env.sh"

FIELDS = (
    gauge("cpus_total", "cpus_total", "Total assigned VCPUs"),
    gauge("cpus_used", "cpus_used", "Used VCPUs"),
    gauge("ram_total_gbytes", "ram_total_gbytes", "Total assigned RAM in gigabytes"),
    gauge("ram_used_gbytes", "ram_used_gbytes", "Used RAM in gigabytes"),
    gauge("instances_total", "instances_total", "Total assigned instances"),
    gauge("instances_used", "instances_used", "Used instances"),
    gauge("volumes_total", "volumes_total", "Total assigned volumes"),
    gauge("volumes_used", "volumes_used", "Used volumes"),
    gauge("volumes_size_total_gbytes", "volumes_size_total_gbytes", "Total assigned volume size in gigabytes"),
    gauge("volumes_size_used_gbytes", "volumes_size_used_gbytes", "Used volume size in gigabytes"),
    gauge("shares_total", "shares_total", "Total assigned shares"),
    gauge("shares_used", "shares_used", "Used shares"),
    gauge("shares_size_total_gbytes", "shares_size_total_gbytes", "Total assigned share size in gigabytes"),
    gauge("shares_size_used_gbytes", "shares_size_used_gbytes", "Used share size in gigabytes"),
    gauge("timestamp", "timestamp", "When the quota script last completed, seconds since epoch"),
)


def build_source(target):
    return CommandSource(
        target.script or DEFAULT_SCRIPT,
        args=[target.env_file or DEFAULT_ENV],
        timeout=target.timeout,
        timestamp_key="timestamp",
    )


DEFINITION = ExporterDefinition(
    key="quota",
    description="OpenStack quota usage via an external script",
    namespace="openstack",
    address=":18000",
    fields=FIELDS,
    build_source=build_source,
)
