"""Stream model and the narrow collaborator protocols the controller depends on.

``StreamClient`` is the request/response contract of the remote streaming
service and ``OffsetStore`` is the consumer-offset table store.  Neither
implementation retries; retry policy lives in the lifecycle controller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Protocol, runtime_checkable

from stream_harness.config.models import IteratorStrategy


class StreamStatus(StrEnum):
    """Lifecycle status of a remote stream as observed by describe."""

    CREATING = "CREATING"
    ACTIVE = "ACTIVE"
    UPDATING = "UPDATING"
    DELETING = "DELETING"
    DELETED = "DELETED"
    # Describe reported the stream as not found.
    ABSENT = "ABSENT"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_remote(cls, value: str | None) -> StreamStatus:
        """Map a status string reported by the service onto the closed enum."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.upper())
        except ValueError:
            return cls.UNKNOWN


@dataclass(slots=True, frozen=True)
class StreamDescriptor:
    """Ground truth about a stream, as returned by describe."""

    name: str
    shard_ids: tuple[str, ...] = ()
    status: StreamStatus = StreamStatus.UNKNOWN


@dataclass(slots=True, frozen=True)
class EventRecord:
    sequence_number: str
    shard_id: str
    data: bytes = field(default=b"", repr=False)
    partition_key: str = ""


@dataclass(slots=True, frozen=True)
class AppendResult:
    """Where an appended event landed.

    ``offset`` is reserved for a logical per-shard offset and is always 0.
    """

    sequence_number: str
    offset: int
    shard_id: str


@dataclass(slots=True, frozen=True)
class DestroyOutcome:
    """Caller-visible result of a destroy; never raised, always returned."""

    stream: str
    status: StreamStatus
    deleted: bool
    detail: str = ""


@runtime_checkable
class StreamClient(Protocol):
    """Request/response facade over the remote streaming service."""

    def create(self, name: str, partition_count: int) -> bool:
        """Request stream creation; True when the service acknowledged it."""
        ...

    def describe(self, name: str) -> StreamDescriptor:
        """Describe a stream; raises ResourceNotFoundError when it is gone."""
        ...

    def delete(self, name: str) -> bool:
        """Request stream deletion; True when the service acknowledged it."""
        ...

    def put(self, name: str, data: bytes, partition_key: str) -> EventRecord:
        """Append one record."""
        ...

    def open_shard_iterator(
        self,
        name: str,
        partition_id: str,
        strategy: IteratorStrategy,
        *,
        starting_sequence_number: str | None = None,
        timestamp: datetime | None = None,
    ) -> str:
        """Return an opaque cursor into a shard."""
        ...

    def get_batch(
        self, iterator: str, max_count: int, *, shard_id: str = ""
    ) -> list[EventRecord]:
        """Fetch up to *max_count* records at *iterator*."""
        ...


@runtime_checkable
class OffsetStore(Protocol):
    """Key-value table store holding consumer offsets."""

    def drop_table(self, table_name: str) -> str:
        """Delete a table and return the status reported by the store."""
        ...
