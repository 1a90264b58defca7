"""Command line entry point."""

from __future__ import annotations

import asyncio
import dataclasses
import sys
from pathlib import Path

import click
from rich.console import Console

from kroundtrip.config.loader import load_config
from kroundtrip.errors import ConfigError
from kroundtrip.harness.report import print_report
from kroundtrip.harness.roundtrip import RoundTripHarness, default_catalog
from kroundtrip.logging_setup import configure_logging
from kroundtrip.models.config import RunConfig
from kroundtrip.models.message import KeyStrategy
from kroundtrip.models.schema import SubjectNameStrategy

console = Console()

EXIT_ABORTED = 2


def _apply_overrides(config: RunConfig, **overrides) -> RunConfig:
    changes = {}
    if overrides["workers"] is not None:
        changes["workers"] = overrides["workers"]
    if overrides["messages"] is not None:
        changes["messages_per_worker"] = overrides["messages"]
    if overrides["topic"] is not None:
        changes["topic"] = dataclasses.replace(config.topic, name=overrides["topic"])
    if overrides["brokers"] is not None:
        changes["cluster"] = dataclasses.replace(
            config.cluster, bootstrap_servers=overrides["brokers"]
        )
    if overrides["registry_url"] is not None:
        changes["registry_url"] = overrides["registry_url"]
    if overrides["timeout_ms"] is not None:
        changes["consumer"] = dataclasses.replace(config.consumer, timeout_ms=overrides["timeout_ms"])
    if overrides["key_strategy"] is not None:
        changes["key_strategy"] = KeyStrategy(overrides["key_strategy"])
    if overrides["keep_topic"]:
        changes["delete_topic_on_teardown"] = False
    return dataclasses.replace(config, **changes) if changes else config


@click.group()
@click.version_option(package_name="kroundtrip")
def main() -> None:
    """Produce/consume round-trip checks against Kafka and a schema registry."""


@main.command()
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path))
@click.option("--workers", type=click.IntRange(min=1), help="Concurrent workers")
@click.option("--messages", type=click.IntRange(min=1), help="Messages per worker")
@click.option("--topic", type=str, help="Topic name")
@click.option("--brokers", type=str, help="Bootstrap servers, comma separated")
@click.option("--registry-url", type=str, help="Schema registry URL")
@click.option("--timeout-ms", type=click.IntRange(min=0), help="Consume timeout in milliseconds")
@click.option(
    "--key-strategy",
    type=click.Choice([s.value for s in KeyStrategy]),
    help="Key format produced and verified",
)
@click.option("--keep-topic", is_flag=True, help="Do not delete the topic on teardown")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
def run(config_path: Path | None, log_level: str, **overrides) -> None:
    """Run the round-trip harness once and report its checks."""
    configure_logging(log_level)
    try:
        config = _apply_overrides(load_config(config_path), **overrides)
        harness = RoundTripHarness(config)
    except ConfigError as e:
        console.print(f"[bold red]Configuration error: {e}[/bold red]")
        sys.exit(EXIT_ABORTED)

    result = asyncio.run(harness.execute())
    print_report(result, console)
    sys.exit(result.exit_code)


@main.command()
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--strategy",
    type=click.Choice([s.value for s in SubjectNameStrategy]),
    default=None,
    help="Subject naming strategy (defaults to the configured one)",
)
def subjects(config_path: Path | None, strategy: str | None) -> None:
    """Print the registry subject for each schema role."""
    try:
        config = load_config(config_path)
        catalog = default_catalog(config)
        naming = SubjectNameStrategy(strategy) if strategy else config.subject_strategy
        for role in catalog.roles():
            console.print(f"{role.value}: {catalog.subject_name(config.topic.name, role, naming)}")
    except ConfigError as e:
        console.print(f"[bold red]Configuration error: {e}[/bold red]")
        sys.exit(EXIT_ABORTED)

