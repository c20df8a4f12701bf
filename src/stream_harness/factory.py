"""Factory functions wiring configuration to concrete collaborators."""

from __future__ import annotations

from stream_harness.config.models import HarnessConfig
from stream_harness.lifecycle.controller import LifecycleController
from stream_harness.streams.base import OffsetStore, StreamClient


def create_stream_client(config: HarnessConfig) -> StreamClient:
    """Create the StreamClient for the configured AWS account."""
    from stream_harness.streams.kinesis.client import KinesisStreamClient

    return KinesisStreamClient(config.aws)


def create_offset_store(config: HarnessConfig) -> OffsetStore:
    """Create the OffsetStore for the configured AWS account."""
    from stream_harness.streams.kinesis.offsets import DynamoDBOffsetStore

    return DynamoDBOffsetStore(config.aws)


def create_controller(config: HarnessConfig | None = None) -> LifecycleController:
    """Build a LifecycleController with Kinesis and DynamoDB collaborators."""
    cfg = config or HarnessConfig()
    return LifecycleController(
        create_stream_client(cfg),
        create_offset_store(cfg),
        reconcile=cfg.reconcile,
        consume=cfg.consume,
        offsets=cfg.offsets,
    )
