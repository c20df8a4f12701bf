"""Pydantic configuration models for the stream harness."""

from __future__ import annotations

import re
from datetime import datetime
from enum import StrEnum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Kinesis stream and DynamoDB table names share this character set.
_RESOURCE_NAME = re.compile(r"^[a-zA-Z0-9_.-]{1,128}$")


class IteratorStrategy(StrEnum):
    """Where a shard iterator starts reading."""

    LATEST = "LATEST"
    TRIM_HORIZON = "TRIM_HORIZON"
    AT_SEQUENCE_NUMBER = "AT_SEQUENCE_NUMBER"
    AFTER_SEQUENCE_NUMBER = "AFTER_SEQUENCE_NUMBER"
    AT_TIMESTAMP = "AT_TIMESTAMP"


class StreamConfig(BaseModel):
    """Target stream and its desired shard cardinality."""

    model_config = ConfigDict(frozen=True)

    name: str
    partition_count: int = Field(default=1, ge=1)

    @field_validator("name")
    @classmethod
    def validate_stream_name(cls, v: str) -> str:
        if not _RESOURCE_NAME.match(v):
            msg = (
                f"Stream name '{v}' must be 1-128 characters of "
                f"letters, digits, '_', '.' or '-'"
            )
            raise ValueError(msg)
        return v


class ConsumerConfig(BaseModel):
    """Which shard to read and where to start."""

    model_config = ConfigDict(frozen=True)

    partition_id: str
    iterator_strategy: IteratorStrategy = IteratorStrategy.TRIM_HORIZON
    starting_sequence_number: str | None = None
    timestamp: datetime | None = None

    @model_validator(mode="after")
    def check_strategy_requirements(self) -> Self:
        """Ensure positional strategies carry their position."""
        strategy = self.iterator_strategy
        if (
            strategy
            in (
                IteratorStrategy.AT_SEQUENCE_NUMBER,
                IteratorStrategy.AFTER_SEQUENCE_NUMBER,
            )
            and not self.starting_sequence_number
        ):
            msg = (
                "starting_sequence_number is required "
                f"when iterator_strategy is '{strategy.value}'"
            )
            raise ValueError(msg)
        if strategy == IteratorStrategy.AT_TIMESTAMP and self.timestamp is None:
            msg = "timestamp is required when iterator_strategy is 'AT_TIMESTAMP'"
            raise ValueError(msg)
        return self


class AwsConfig(BaseModel):
    """AWS connectivity: profile, region, optional proxy and endpoint override."""

    model_config = ConfigDict(frozen=True)

    region: str = "us-east-1"
    profile: str | None = None
    proxy_host: str | None = None
    proxy_port: int | None = Field(default=None, ge=1, le=65535)
    # Points the clients at a local emulator (kinesalite, localstack).
    endpoint_url: str | None = None
    # Cap on botocore's own retry layer; 1 disables SDK retries.
    sdk_max_attempts: int = Field(default=1, ge=1)

    @model_validator(mode="after")
    def check_proxy_pair(self) -> Self:
        """A proxy port without a host is meaningless."""
        if self.proxy_port is not None and not self.proxy_host:
            msg = "proxy_host is required when proxy_port is set"
            raise ValueError(msg)
        return self

    @property
    def proxy_url(self) -> str | None:
        if not self.proxy_host:
            return None
        if self.proxy_port is None:
            return f"http://{self.proxy_host}"
        return f"http://{self.proxy_host}:{self.proxy_port}"


class ReconcileConfig(BaseModel):
    """Polling budget for waiting on stream status transitions."""

    model_config = ConfigDict(frozen=True)

    max_iterations: int = Field(default=6, ge=1)
    wait_seconds: float = Field(default=9.0, ge=0.0)


class ConsumeConfig(BaseModel):
    """Batch size and single-shot backoff used when consuming."""

    model_config = ConfigDict(frozen=True)

    batch_size: int = Field(default=10, ge=1, le=10000)
    backoff_seconds: float = Field(default=1.0, ge=0.0)


class OffsetStoreConfig(BaseModel):
    """Consumer-offset table settings."""

    model_config = ConfigDict(frozen=True)

    settle_seconds: float = Field(default=1.0, ge=0.0)


class HarnessConfig(BaseModel):
    """Top-level harness configuration, loaded once at startup."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    aws: AwsConfig = AwsConfig()
    reconcile: ReconcileConfig = ReconcileConfig()
    consume: ConsumeConfig = ConsumeConfig()
    offsets: OffsetStoreConfig = OffsetStoreConfig()
