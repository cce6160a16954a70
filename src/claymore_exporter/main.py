"""
claymore-exporter entry point.

Usage:
    claymore-exporter --dial-addr "10.0.0.2;10.0.0.3"     Serve /metrics for two rigs
    claymore-exporter --mock 3                           Serve three simulated rigs
    claymore-exporter --dial-addr 10.0.0.2 show          Print current stats once
"""

from __future__ import annotations

import logging

import click

from claymore_exporter import __version__
from claymore_exporter.collector.rig_client import DEFAULT_METHOD, DEFAULT_PORT, PROTOCOL_FAMILIES
from claymore_exporter.config import (
    DEFAULT_LISTEN_ADDRESS,
    DEFAULT_METRICS_PATH,
    ExporterConfig,
    parse_dial_addrs,
    parse_listen_address,
)
from claymore_exporter.errors import ConfigError
from claymore_exporter.publisher import build_registry
from claymore_exporter.server import serve


log = logging.getLogger("claymore_exporter")


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="claymore-exporter")
@click.option("--dial-addr", envvar="CLAYMORE_DIAL_ADDR", default="",
              help="Rig hosts separated by ; (e.g. 192.168.1.1;192.168.1.2)")
@click.option("--port", envvar="CLAYMORE_PORT", default=DEFAULT_PORT, type=int,
              help="Rig stats port")
@click.option("--proto", envvar="CLAYMORE_PROTO", default="tcp",
              type=click.Choice(sorted(PROTOCOL_FAMILIES)), help="Transport protocol")
@click.option("--method", envvar="CLAYMORE_STATS", default=DEFAULT_METHOD,
              help="RPC method that returns the stats")
@click.option("--timeout", envvar="CLAYMORE_TIMEOUT", default=5.0, type=float,
              help="Per-rig network timeout in seconds")
@click.option("--web.listen-address", "listen_address", envvar="CLAYMORE_LISTEN_ADDRESS",
              default=DEFAULT_LISTEN_ADDRESS,
              help="Address on which to expose metrics and web interface")
@click.option("--web.telemetry-path", "metrics_path", envvar="CLAYMORE_TELEMETRY_PATH",
              default=DEFAULT_METRICS_PATH, help="Path under which to expose metrics")
@click.option("--mock", "mock_rigs", default=0, type=click.IntRange(min=0),
              help="Serve N simulated rigs instead of dialing real ones")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
@click.pass_context
def cli(ctx, dial_addr: str, port: int, proto: str, method: str, timeout: float,
        listen_address: str, metrics_path: str, mock_rigs: int, verbose: bool):
    """Claymore miner stats exporter for Prometheus."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    config = ExporterConfig(
        dial_addrs=parse_dial_addrs(dial_addr),
        port=port,
        proto=proto,
        method=method,
        timeout_seconds=timeout,
        listen_address=listen_address,
        metrics_path=metrics_path,
        mock_rigs=mock_rigs,
    )
    try:
        config.validate()
    except ConfigError as e:
        raise click.UsageError(str(e), ctx=ctx) from e

    ctx.ensure_object(dict)
    ctx.obj["config"] = config

    # No subcommand: run the exporter
    if ctx.invoked_subcommand is None:
        sources = config.build_sources()
        registry, _ = build_registry(sources, scrape_timeout=config.scrape_timeout)
        log.info("Exporting %d rig(s): %s", len(sources), ", ".join(s.name() for s in sources))
        serve(registry, parse_listen_address(config.listen_address), metrics_path=config.metrics_path)


@cli.command()
@click.option("--output", type=click.Choice(["table", "jsonl"]), default="table",
              help="Output mode: table (Rich) or jsonl (one JSON line per rig)")
@click.pass_context
def show(ctx, output: str):
    """Poll every rig once and print what it reports."""
    from claymore_exporter.dashboard.terminal import print_jsonl, print_results

    config: ExporterConfig = ctx.obj["config"]
    _, collector = build_registry(config.build_sources(), scrape_timeout=config.scrape_timeout)
    results = collector.poll_all()

    if output == "jsonl":
        print_jsonl(results)
    else:
        print_results(results)

    if not any(r.ok for r in results):
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
