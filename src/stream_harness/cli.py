"""Typer CLI for driving stream lifecycles by hand on a test rig."""

from __future__ import annotations

import json
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.table import Table

from stream_harness.config.loader import load_harness_config
from stream_harness.config.models import (
    ConsumerConfig,
    HarnessConfig,
    IteratorStrategy,
    StreamConfig,
)
from stream_harness.errors import HarnessError
from stream_harness.factory import create_controller
from stream_harness.lifecycle.controller import LifecycleController

logger = structlog.get_logger()
console = Console()
app = typer.Typer(name="stream-harness", help="Kinesis stream test-harness CLI")

ConfigOption = typer.Option(None, "--config", "-c", help="Harness YAML")


def _load(config_path: str | None) -> tuple[HarnessConfig, LifecycleController]:
    if config_path is not None and not Path(config_path).exists():
        console.print(f"[red]Config file not found: {config_path}[/red]")
        raise typer.Exit(1)
    try:
        config = load_harness_config(Path(config_path) if config_path else None)
    except HarnessError as exc:
        console.print(f"[red]Invalid config:[/red] {exc}")
        raise typer.Exit(1) from exc
    return config, create_controller(config)


def _fail(exc: Exception) -> typer.Exit:
    console.print(f"[red]{type(exc).__name__}:[/red] {exc}")
    return typer.Exit(1)


def _stream(name: str, partitions: int = 1) -> StreamConfig:
    try:
        return StreamConfig(name=name, partition_count=partitions)
    except ValueError as exc:
        raise _fail(exc) from exc


@app.command()
def validate(config_path: str | None = ConfigOption) -> None:
    """Validate a harness configuration file."""
    config, _ = _load(config_path)
    aws = config.aws
    console.print(f"[green]Valid[/green]: {config_path or '(defaults)'}")
    console.print(f"  region:    {aws.region}")
    console.print(f"  profile:   {aws.profile or '(default chain)'}")
    console.print(f"  proxy:     {aws.proxy_url or '(none)'}")
    console.print(f"  endpoint:  {aws.endpoint_url or '(aws)'}")
    console.print(
        f"  reconcile: {config.reconcile.max_iterations} poll(s) "
        f"every {config.reconcile.wait_seconds:g}s"
    )


@app.command()
def start(
    stream: str = typer.Argument(..., help="Stream name"),
    partitions: int = typer.Option(1, "--partitions", "-p", min=1),
    config_path: str | None = ConfigOption,
) -> None:
    """Create a stream and wait until it is ACTIVE."""
    _, controller = _load(config_path)
    try:
        descriptor = controller.start_broker(_stream(stream, partitions))
    except HarnessError as exc:
        raise _fail(exc) from exc

    table = Table(title=f"Stream {descriptor.name}")
    table.add_column("Shard", style="cyan")
    for shard_id in descriptor.shard_ids:
        table.add_row(shard_id)
    console.print(table)
    console.print(f"[green]{descriptor.status}[/green]")


@app.command()
def status(
    stream: str = typer.Argument(..., help="Stream name"),
    config_path: str | None = ConfigOption,
) -> None:
    """Assert that a stream exists and is ACTIVE."""
    _, controller = _load(config_path)
    try:
        controller.assert_stream_exists(_stream(stream))
    except (AssertionError, HarnessError) as exc:
        raise _fail(exc) from exc
    console.print(f"[green]{stream} is ACTIVE[/green]")


@app.command()
def append(
    stream: str = typer.Argument(..., help="Stream name"),
    payload: str = typer.Argument(..., help="Event payload (JSON object)"),
    config_path: str | None = ConfigOption,
) -> None:
    """Append one event with a random partition key."""
    try:
        event = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise _fail(exc) from exc
    if not isinstance(event, dict):
        console.print(f"[red]Payload must be a JSON object, got {type(event).__name__}[/red]")
        raise typer.Exit(1)
    _, controller = _load(config_path)
    try:
        result = controller.append_event(stream, event)
    except HarnessError as exc:
        raise _fail(exc) from exc
    console.print(
        f"[cyan]{result.shard_id}[/cyan] seq={result.sequence_number} "
        f"offset={result.offset}"
    )


@app.command()
def consume(
    stream: str = typer.Argument(..., help="Stream name"),
    shard: str = typer.Option(..., "--shard", "-s", help="Shard id"),
    strategy: IteratorStrategy = typer.Option(
        IteratorStrategy.TRIM_HORIZON, "--strategy", help="Iterator type"
    ),
    sequence_number: str | None = typer.Option(
        None, "--sequence-number", help="Start position for *_SEQUENCE_NUMBER"
    ),
    config_path: str | None = ConfigOption,
) -> None:
    """Read one batch of events from a shard."""
    _, controller = _load(config_path)
    try:
        consumer = ConsumerConfig(
            partition_id=shard,
            iterator_strategy=strategy,
            starting_sequence_number=sequence_number,
        )
    except ValueError as exc:
        raise _fail(exc) from exc
    try:
        events = controller.consume_event(_stream(stream), consumer)
    except HarnessError as exc:
        raise _fail(exc) from exc

    if not events:
        console.print("[yellow]No events[/yellow]")
        return
    for event in events:
        console.print(json.dumps(event))


@app.command()
def destroy(
    stream: str = typer.Argument(..., help="Stream name"),
    state_table: str | None = typer.Option(
        None, "--state-table", help="Consumer-offset table to drop afterwards"
    ),
    config_path: str | None = ConfigOption,
) -> None:
    """Delete a stream and wait until it is gone."""
    _, controller = _load(config_path)
    try:
        outcome = controller.destroy_broker(
            _stream(stream), consumer_state_table=state_table
        )
    except HarnessError as exc:
        raise _fail(exc) from exc

    if outcome.deleted:
        console.print(f"[green]{stream} deleted[/green] ({outcome.status})")
        return
    console.print(f"[yellow]{stream} not confirmed deleted:[/yellow] {outcome.detail}")
    raise typer.Exit(1)


@app.command("drop-state")
def drop_state(
    table: str = typer.Argument(..., help="Consumer-offset table name"),
    config_path: str | None = ConfigOption,
) -> None:
    """Drop a consumer-offset table."""
    _, controller = _load(config_path)
    try:
        table_status = controller.drop_consumer_state(table)
    except HarnessError as exc:
        raise _fail(exc) from exc
    console.print(f"[green]{table}[/green] {table_status}")


if __name__ == "__main__":
    app()
