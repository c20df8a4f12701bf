#!/usr/bin/env python3
"""Runnable demo: bring up an "orders" stream, write and read events, tear down.

Prerequisites:
    a Kinesis endpoint (real AWS or a local emulator on :4567)
    uv run python examples/orders_stream_demo.py [examples/harness.yaml]
"""

from __future__ import annotations

import sys
from pathlib import Path

from rich.console import Console

from stream_harness import ConsumerConfig, StreamConfig, create_controller, embedded_stream
from stream_harness.config.loader import load_harness_config
from stream_harness.errors import HarnessError

console = Console()


def main() -> None:
    # 1. Load config (defaults merged with the optional YAML override)
    config_path = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    controller = create_controller(load_harness_config(config_path))
    orders = StreamConfig(name="orders", partition_count=2)

    # 2. Create, use and destroy the stream
    with embedded_stream(controller, orders, consumer_state_table="orders-demo") as stream:
        console.print(f"[green]Stream ACTIVE:[/green] {stream.name} {stream.shard_ids}")

        written = [
            controller.append_event(stream.name, {"order_id": n, "total": 10.0 * n})
            for n in range(1, 6)
        ]
        for result in written:
            console.print(f"[cyan]{result.shard_id}[/cyan]  seq={result.sequence_number}")

        # 3. Read each shard back from the start
        for shard_id in stream.shard_ids:
            events = controller.consume_event(orders, ConsumerConfig(partition_id=shard_id))
            console.print(f"[yellow]{shard_id}[/yellow]: {len(events)} event(s)")
            for event in events:
                console.print(f"  {event}")

    console.print("[green]Stream destroyed[/green]")


if __name__ == "__main__":
    try:
        main()
    except HarnessError as exc:
        console.print(f"[red]{type(exc).__name__}:[/red] {exc}")
        sys.exit(1)
