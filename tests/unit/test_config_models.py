"""Unit tests for configuration Pydantic models."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from stream_harness.config.models import (
    AwsConfig,
    ConsumeConfig,
    ConsumerConfig,
    HarnessConfig,
    IteratorStrategy,
    ReconcileConfig,
    StreamConfig,
)


class TestStreamConfig:
    def test_defaults(self):
        cfg = StreamConfig(name="orders")
        assert cfg.partition_count == 1

    def test_partition_count_must_be_positive(self):
        with pytest.raises(ValidationError):
            StreamConfig(name="orders", partition_count=0)

    @pytest.mark.parametrize("name", ["orders", "cdc.public-orders_v2", "a" * 128])
    def test_valid_names(self, name: str):
        assert StreamConfig(name=name).name == name

    @pytest.mark.parametrize("name", ["", "has space", "slash/name", "a" * 129])
    def test_invalid_names(self, name: str):
        with pytest.raises(ValidationError, match="1-128 characters"):
            StreamConfig(name=name)

    def test_is_immutable(self):
        cfg = StreamConfig(name="orders", partition_count=2)
        with pytest.raises(ValidationError):
            cfg.partition_count = 3  # type: ignore[misc]


class TestConsumerConfig:
    def test_defaults_to_trim_horizon(self):
        cfg = ConsumerConfig(partition_id="shardId-000000000000")
        assert cfg.iterator_strategy == IteratorStrategy.TRIM_HORIZON

    def test_strategy_from_string(self):
        cfg = ConsumerConfig(partition_id="s", iterator_strategy="LATEST")
        assert cfg.iterator_strategy == IteratorStrategy.LATEST

    @pytest.mark.parametrize(
        "strategy",
        [IteratorStrategy.AT_SEQUENCE_NUMBER, IteratorStrategy.AFTER_SEQUENCE_NUMBER],
    )
    def test_sequence_strategies_require_sequence_number(self, strategy):
        with pytest.raises(ValidationError, match="starting_sequence_number"):
            ConsumerConfig(partition_id="s", iterator_strategy=strategy)

    def test_at_timestamp_requires_timestamp(self):
        with pytest.raises(ValidationError, match="timestamp"):
            ConsumerConfig(partition_id="s", iterator_strategy="AT_TIMESTAMP")

    def test_at_timestamp_accepts_timestamp(self):
        ts = datetime(2026, 1, 1, tzinfo=UTC)
        cfg = ConsumerConfig(
            partition_id="s", iterator_strategy="AT_TIMESTAMP", timestamp=ts
        )
        assert cfg.timestamp == ts


class TestAwsConfig:
    def test_defaults(self):
        cfg = AwsConfig()
        assert cfg.region == "us-east-1"
        assert cfg.profile is None
        assert cfg.proxy_url is None
        assert cfg.sdk_max_attempts == 1

    def test_proxy_url(self):
        assert AwsConfig(proxy_host="proxy", proxy_port=8080).proxy_url == (
            "http://proxy:8080"
        )
        assert AwsConfig(proxy_host="proxy").proxy_url == "http://proxy"

    def test_proxy_port_without_host_rejected(self):
        with pytest.raises(ValidationError, match="proxy_host"):
            AwsConfig(proxy_port=8080)

    def test_proxy_port_range(self):
        with pytest.raises(ValidationError):
            AwsConfig(proxy_host="proxy", proxy_port=70000)


class TestTuning:
    def test_reconcile_defaults(self):
        cfg = ReconcileConfig()
        assert cfg.max_iterations == 6
        assert cfg.wait_seconds == 9.0

    def test_reconcile_needs_one_iteration(self):
        with pytest.raises(ValidationError):
            ReconcileConfig(max_iterations=0)

    def test_consume_defaults(self):
        cfg = ConsumeConfig()
        assert cfg.batch_size == 10
        assert cfg.backoff_seconds == 1.0


class TestHarnessConfig:
    def test_nested_defaults(self):
        cfg = HarnessConfig()
        assert cfg.reconcile.max_iterations == 6
        assert cfg.consume.batch_size == 10
        assert cfg.offsets.settle_seconds == 1.0

    def test_unknown_keys_rejected(self):
        with pytest.raises(ValidationError):
            HarnessConfig.model_validate({"kafka": {}})
