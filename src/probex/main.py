"""
probex entry point.

Usage:
    probex wmcore --uri http://localhost:8080/wmcore/status
    probex das2go --address :18217
    probex process --pid 1234 --namespace reqmgr
    probex quota --script quota.sh --env keystone_env.sh --timeout 60
    probex inspect http://localhost:18000/metrics

Every option can also come from the environment as
PROBEX_<COMMAND>_<OPTION>, e.g. PROBEX_WMCORE_URI.
"""

from __future__ import annotations

import logging

import click
import httpx

from probex import __version__
from probex.exporter import Exporter
from probex.exporters import REGISTRY
from probex.exporters.base import ExporterDefinition
from probex.metrics import ScrapeTarget
from probex.server import MetricsServer, parse_address


log = logging.getLogger("probex")


@click.group(context_settings={"auto_envvar_prefix": "PROBEX"})
@click.version_option(version=__version__, prog_name="probex")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
def cli(verbose: bool):
    """probex - Prometheus exporters for service status pages, processes and scripts."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _validate_address(ctx, param, value):
    try:
        parse_address(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc
    return value


def _serving_options(definition: ExporterDefinition):
    """Listen address, endpoint and namespace, with this exporter's defaults."""

    def decorate(fn):
        fn = click.option("--namespace", default=definition.namespace, show_default=True,
                          help="Prefix of every exported metric name")(fn)
        fn = click.option("--endpoint", default=definition.endpoint, show_default=True,
                          help="Path the metrics are served on")(fn)
        fn = click.option("--address", default=definition.address, show_default=True,
                          callback=_validate_address,
                          help="host:port to listen on, :port for all interfaces")(fn)
        return fn

    return decorate


def _http_options(definition: ExporterDefinition):
    """Options for exporters that read an HTTP(S) status page."""

    def decorate(fn):
        fn = click.option("--proxyfile", default="",
                          help="X509 proxy file, overrides X509_USER_PROXY")(fn)
        fn = click.option("--renew-client-interval", default=600, show_default=True,
                          help="Seconds between client certificate reloads, <= 0 disables them")(fn)
        fn = click.option("--connection-timeout", default=3.0, show_default=True,
                          help="HTTP timeout in seconds")(fn)
        fn = click.option("--agent", default="", help="User-Agent header to send")(fn)
        fn = click.option("--content-type", default="", help="Accept header to send")(fn)
        if definition.default_uri:
            fn = click.option("--uri", default=definition.default_uri, show_default=True,
                              help="Status page to scrape")(fn)
        else:
            fn = click.option("--uri", required=True, help="Status page to scrape")(fn)
        return fn

    return decorate


def _http_target(uri, content_type, agent, connection_timeout, renew_client_interval,
                 proxyfile) -> ScrapeTarget:
    return ScrapeTarget(
        uri=uri,
        timeout=connection_timeout,
        content_type=content_type,
        user_agent=agent,
        renew_interval=renew_client_interval,
        proxyfile=proxyfile,
    )


def _serve(definition: ExporterDefinition, target: ScrapeTarget,
           address: str, endpoint: str, namespace: str):
    try:
        exporter = Exporter.from_definition(definition, target, namespace=namespace)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    try:
        server = MetricsServer(exporter, address=address, endpoint=endpoint)
    except OSError as exc:
        log.error("Cannot listen on %s: %s", address, exc)
        exporter.close()
        raise SystemExit(1)

    log.info("%s exporter (%s) serving %s", definition.key, exporter.name, server.url)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.close()
        exporter.close()


def _http_command(key: str):
    definition = REGISTRY[key]

    @cli.command(name=key, help=f"Export the {definition.description}.")
    @_serving_options(definition)
    @_http_options(definition)
    def command(address, endpoint, namespace, **http_opts):
        _serve(definition, _http_target(**http_opts), address, endpoint, namespace)

    return command


for _key in ("http", "cpy", "das2go", "reqmgr", "wmcore"):
    _http_command(_key)


@cli.command()
@_serving_options(REGISTRY["process"])
@click.option("--pid", required=True, type=click.IntRange(min=1), help="Process id to watch")
def process(address, endpoint, namespace, pid):
    """Export resource usage of a local process."""
    _serve(REGISTRY["process"], ScrapeTarget(pid=pid), address, endpoint, namespace)


@cli.command()
@_serving_options(REGISTRY["quota"])
@click.option("--script", default="/data/cmsweb-exporters/quota.sh", show_default=True,
              help="Quota script, run with /bin/bash")
@click.option("--env", "env_file", default="/etc/secrets/keystone_env.sh", show_default=True,
              help="OpenStack environment file passed to the script")
@click.option("--timeout", type=float, default=None,
              help="Seconds to let the script run (default: no limit)")
def quota(address, endpoint, namespace, script, env_file, timeout):
    """Export OpenStack quota usage reported by an external script."""
    target = ScrapeTarget(script=script, env_file=env_file, timeout=timeout)
    _serve(REGISTRY["quota"], target, address, endpoint, namespace)


@cli.command()
@_serving_options(REGISTRY["eos"])
@click.option("--eos-path", required=True, help="Directory on the EOS mount to probe")
def eos(address, endpoint, namespace, eos_path):
    """Export whether an EOS path is reachable and writable."""
    _serve(REGISTRY["eos"], ScrapeTarget(path=eos_path), address, endpoint, namespace)


@cli.command(name="list")
def list_exporters():
    """Show the available exporters and their defaults."""
    from rich.console import Console
    from rich.table import Table

    table = Table(show_header=True, header_style="bold")
    table.add_column("Command", style="cyan")
    table.add_column("Source")
    table.add_column("Address")
    table.add_column("Namespace")
    table.add_column("Metrics", justify="right")

    for definition in REGISTRY.values():
        table.add_row(
            definition.key,
            definition.description,
            definition.address,
            definition.namespace,
            str(len(definition.fields) + 1),
        )
    Console().print(table)


@cli.command()
@click.argument("url")
@click.option("--timeout", default=5.0, show_default=True, help="HTTP timeout in seconds")
@click.option("--prefix", default="", help="Only show metrics starting with this")
def inspect(url, timeout, prefix):
    """Fetch a running exporter's endpoint and print what it serves."""
    from rich.console import Console
    from rich.table import Table
    from probex.collector.prometheus_parser import parse_exposition

    try:
        response = httpx.get(url, timeout=timeout)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise click.ClickException(f"failed to fetch {url}: {exc}") from exc

    families = parse_exposition(response.text)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("Type", width=8)
    table.add_column("Labels")
    table.add_column("Value", justify="right")

    shown = 0
    for fam in families.values():
        for sample in fam.samples:
            if prefix and not sample.name.startswith(prefix):
                continue
            labels = ", ".join(f"{k}={v}" for k, v in sample.labels.items())
            table.add_row(sample.name, fam.metric_type, labels, f"{sample.value:g}")
            shown += 1

    console = Console()
    console.print(table)
    console.print(f"[dim]{shown} samples from {url}[/dim]")


if __name__ == "__main__":
    cli()
