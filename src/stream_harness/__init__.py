"""Lifecycle harness for Kinesis streams used in integration tests."""

from stream_harness.config.models import ConsumerConfig, IteratorStrategy, StreamConfig
from stream_harness.factory import create_controller
from stream_harness.lifecycle.controller import LifecycleController
from stream_harness.lifecycle.harness import embedded_stream
from stream_harness.streams.base import StreamStatus

__all__ = [
    "ConsumerConfig",
    "IteratorStrategy",
    "LifecycleController",
    "StreamConfig",
    "StreamStatus",
    "create_controller",
    "embedded_stream",
]
