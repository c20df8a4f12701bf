"""Verify every implementation satisfies the protocol it is wired in as."""

from __future__ import annotations

from stream_harness.config.models import AwsConfig, HarnessConfig
from stream_harness.factory import (
    create_controller,
    create_offset_store,
    create_stream_client,
)
from stream_harness.lifecycle.controller import LifecycleController
from stream_harness.streams.base import OffsetStore, StreamClient
from stream_harness.streams.kinesis.client import KinesisStreamClient
from stream_harness.streams.kinesis.offsets import DynamoDBOffsetStore


class TestProtocolConformance:
    def test_kinesis_client_satisfies_stream_client(self):
        assert isinstance(KinesisStreamClient(AwsConfig()), StreamClient)

    def test_dynamodb_store_satisfies_offset_store(self):
        assert isinstance(DynamoDBOffsetStore(AwsConfig()), OffsetStore)


class TestFactory:
    def test_create_stream_client(self):
        client = create_stream_client(HarnessConfig())
        assert isinstance(client, KinesisStreamClient)

    def test_create_offset_store(self):
        store = create_offset_store(HarnessConfig())
        assert isinstance(store, DynamoDBOffsetStore)

    def test_create_controller_does_not_touch_aws(self):
        controller = create_controller()
        assert isinstance(controller, LifecycleController)
