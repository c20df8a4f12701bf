"""In-memory stream service fixtures for lifecycle integration tests.

``FakeStreamService`` implements the ``StreamClient`` contract with the same
asynchronous status transitions a real Kinesis endpoint exhibits: a new
stream reports CREATING for a few describes before turning ACTIVE, and a
deleted stream reports DELETING for a few describes before it vanishes.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime

import pytest

from stream_harness.config.models import (
    ConsumeConfig,
    IteratorStrategy,
    OffsetStoreConfig,
    ReconcileConfig,
)
from stream_harness.errors import ResourceNotFoundError, ServiceError
from stream_harness.lifecycle.controller import LifecycleController
from stream_harness.streams.base import EventRecord, StreamDescriptor, StreamStatus


@dataclass
class _Stream:
    shard_ids: list[str]
    status: StreamStatus = StreamStatus.CREATING
    describes_left: int = 0
    shards: dict[str, list[EventRecord]] = field(default_factory=dict)


class FakeStreamService:
    def __init__(self, *, settle_describes: int = 2) -> None:
        self.settle_describes = settle_describes
        self.streams: dict[str, _Stream] = {}
        self.calls: list[str] = []
        self._next_sequence = 49_000_000
        self._iterators: dict[str, tuple[str, str, int]] = {}

    def _get(self, name: str, operation: str) -> _Stream:
        stream = self.streams.get(name)
        if stream is None:
            raise ResourceNotFoundError(
                operation, name, "ResourceNotFoundException", "Stream not found"
            )
        return stream

    def create(self, name: str, partition_count: int) -> bool:
        self.calls.append("create")
        if name in self.streams:
            raise ServiceError("CreateStream", name, "ResourceInUseException", "exists")
        shard_ids = [f"shardId-{i:012d}" for i in range(partition_count)]
        self.streams[name] = _Stream(
            shard_ids=shard_ids,
            describes_left=self.settle_describes,
            shards={s: [] for s in shard_ids},
        )
        return True

    def describe(self, name: str) -> StreamDescriptor:
        self.calls.append("describe")
        stream = self._get(name, "DescribeStream")
        if stream.describes_left > 0:
            stream.describes_left -= 1
        elif stream.status == StreamStatus.CREATING:
            stream.status = StreamStatus.ACTIVE
        elif stream.status == StreamStatus.DELETING:
            del self.streams[name]
            raise ResourceNotFoundError(
                "DescribeStream", name, "ResourceNotFoundException", "Stream not found"
            )
        return StreamDescriptor(name, tuple(stream.shard_ids), stream.status)

    def delete(self, name: str) -> bool:
        self.calls.append("delete")
        stream = self._get(name, "DeleteStream")
        stream.status = StreamStatus.DELETING
        stream.describes_left = self.settle_describes
        return True

    def put(self, name: str, data: bytes, partition_key: str) -> EventRecord:
        stream = self._get(name, "PutRecord")
        digest = int(hashlib.md5(partition_key.encode()).hexdigest(), 16)
        shard_id = stream.shard_ids[digest % len(stream.shard_ids)]
        self._next_sequence += 1
        record = EventRecord(str(self._next_sequence), shard_id, data, partition_key)
        stream.shards[shard_id].append(record)
        return record

    def open_shard_iterator(
        self,
        name: str,
        partition_id: str,
        strategy: IteratorStrategy,
        *,
        starting_sequence_number: str | None = None,
        timestamp: datetime | None = None,
    ) -> str:
        records = self._get(name, "GetShardIterator").shards[partition_id]
        if strategy == IteratorStrategy.LATEST:
            position = len(records)
        elif strategy == IteratorStrategy.TRIM_HORIZON:
            position = 0
        else:
            seqs = [r.sequence_number for r in records]
            position = seqs.index(starting_sequence_number)
            if strategy == IteratorStrategy.AFTER_SEQUENCE_NUMBER:
                position += 1
        token = f"iter-{len(self._iterators)}"
        self._iterators[token] = (name, partition_id, position)
        return token

    def get_batch(
        self, iterator: str, max_count: int, *, shard_id: str = ""
    ) -> list[EventRecord]:
        name, partition_id, position = self._iterators[iterator]
        records = self._get(name, "GetRecords").shards[partition_id]
        return records[position : position + max_count]


class RecordingOffsetStore:
    def __init__(self) -> None:
        self.dropped: list[str] = []

    def drop_table(self, table_name: str) -> str:
        self.dropped.append(table_name)
        return "DELETING"


@pytest.fixture
def service() -> FakeStreamService:
    return FakeStreamService()


@pytest.fixture
def offset_store() -> RecordingOffsetStore:
    return RecordingOffsetStore()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def controller(service, offset_store, sleeps) -> LifecycleController:
    return LifecycleController(
        service,
        offset_store,
        reconcile=ReconcileConfig(max_iterations=6, wait_seconds=9),
        consume=ConsumeConfig(batch_size=10, backoff_seconds=1),
        offsets=OffsetStoreConfig(settle_seconds=1),
        sleep=sleeps.append,
    )
