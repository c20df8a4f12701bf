"""LifecycleController — create/wait, produce, consume and destroy/wait.

Setup is strict: a stream that was not acknowledged or never became ACTIVE
aborts the caller.  Teardown is idempotent: a stream that cannot be found
after (or instead of) a delete request counts as deleted, and service errors
during teardown are logged and reported through ``DestroyOutcome`` rather
than raised.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import structlog

from stream_harness.config.models import (
    ConsumeConfig,
    ConsumerConfig,
    OffsetStoreConfig,
    ReconcileConfig,
    StreamConfig,
)
from stream_harness.errors import (
    ConfigurationError,
    HarnessError,
    ProvisioningError,
    ReconciliationTimeoutError,
    ResourceNotFoundError,
    ServiceError,
)
from stream_harness.lifecycle.policy import RetryPolicy, wait_until
from stream_harness.streams.base import (
    AppendResult,
    DestroyOutcome,
    OffsetStore,
    StreamClient,
    StreamDescriptor,
    StreamStatus,
)
from stream_harness.streams.codec import Payload, decode_record, encode_payload

logger = structlog.get_logger()


class LifecycleController:
    """Drives a remote stream through its asynchronous lifecycle.

    All waits block the calling thread; there is no internal parallelism and
    no cancellation once a wait has begun.
    """

    def __init__(
        self,
        client: StreamClient,
        offset_store: OffsetStore | None = None,
        *,
        reconcile: ReconcileConfig | None = None,
        consume: ConsumeConfig | None = None,
        offsets: OffsetStoreConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._offset_store = offset_store
        self._reconcile = reconcile or ReconcileConfig()
        self._consume = consume or ConsumeConfig()
        self._offsets = offsets or OffsetStoreConfig()
        self._sleep = sleep

    # -- Provisioning ----------------------------------------------------------

    def start_broker(self, stream_config: StreamConfig) -> StreamDescriptor:
        """Create the configured stream and block until it is ACTIVE."""
        logger.info(
            "broker.starting",
            stream=stream_config.name,
            partitions=stream_config.partition_count,
            at=datetime.now(UTC).isoformat(),
        )
        return self.create_stream_and_wait(
            stream_config.name, stream_config.partition_count
        )

    def create_stream_and_wait(self, stream: str, partition_count: int) -> StreamDescriptor:
        try:
            created = self._client.create(stream, partition_count)
        except ServiceError as exc:
            msg = f"Create request for stream '{stream}' failed: {exc}"
            raise ProvisioningError(msg) from exc
        if not created:
            msg = f"Create request for stream '{stream}' was not acknowledged"
            raise ProvisioningError(msg)

        wait_until(
            lambda: self._observe(stream, StreamStatus.ACTIVE),
            RetryPolicy.until_active(self._reconcile),
            resource=stream,
            sleep=self._sleep,
        )

        try:
            descriptor = self._client.describe(stream)
        except ServiceError as exc:
            msg = f"Stream '{stream}' became ACTIVE but could not be described: {exc}"
            raise ProvisioningError(msg) from exc
        if descriptor.status != StreamStatus.ACTIVE:
            # Converged, then moved on before the final describe.
            raise ReconciliationTimeoutError(
                stream,
                str(StreamStatus.ACTIVE),
                str(descriptor.status),
                self._reconcile.max_iterations,
                RetryPolicy.until_active(self._reconcile).budget_seconds,
            )
        logger.info(
            "broker.started",
            stream=descriptor.name,
            shards=descriptor.shard_ids,
            status=str(descriptor.status),
        )
        return descriptor

    def assert_stream_exists(self, stream_config: StreamConfig) -> None:
        """Raise AssertionError unless the stream is currently ACTIVE."""
        descriptor = self._client.describe(stream_config.name)
        if descriptor.status != StreamStatus.ACTIVE:
            msg = (
                f"Stream '{stream_config.name}' is {descriptor.status}, "
                f"expected {StreamStatus.ACTIVE}"
            )
            raise AssertionError(msg)

    # -- Teardown --------------------------------------------------------------

    def destroy_broker(
        self,
        stream_config: StreamConfig,
        *,
        consumer_state_table: str | None = None,
    ) -> DestroyOutcome:
        """Delete the stream and wait until it is gone.

        Safe to call repeatedly.  Raises only when the service refuses to
        acknowledge the delete or the stream is still present once the
        polling budget is spent.
        """
        stream = stream_config.name
        logger.info(
            "broker.destroying", stream=stream, at=datetime.now(UTC).isoformat()
        )
        try:
            requested = self._client.delete(stream)
        except ResourceNotFoundError:
            logger.info("broker.already_deleted", stream=stream)
            outcome = DestroyOutcome(
                stream, StreamStatus.ABSENT, deleted=True, detail="not found on delete"
            )
        except ServiceError as exc:
            logger.warning("broker.delete_request_failed", stream=stream, error=str(exc))
            outcome = DestroyOutcome(
                stream, StreamStatus.UNKNOWN, deleted=False, detail=str(exc)
            )
        else:
            if not requested:
                msg = f"Delete request for stream '{stream}' was not acknowledged"
                raise ProvisioningError(msg)
            try:
                wait_until(
                    lambda: self._observe(stream, StreamStatus.DELETED),
                    RetryPolicy.until_deleted(self._reconcile),
                    resource=stream,
                    sleep=self._sleep,
                )
            except ReconciliationTimeoutError as exc:
                # Only a stream actually seen in a present state is fatal.
                if exc.observed != StreamStatus.UNKNOWN:
                    raise
                logger.warning("broker.delete_unconfirmed", stream=stream, error=str(exc))
                outcome = DestroyOutcome(
                    stream, StreamStatus.UNKNOWN, deleted=False, detail=str(exc)
                )
            else:
                outcome = self._confirm_deleted(stream)

        if consumer_state_table is not None:
            self._drop_state_quietly(consumer_state_table)
        return outcome

    def _confirm_deleted(self, stream: str) -> DestroyOutcome:
        try:
            descriptor = self._client.describe(stream)
        except ResourceNotFoundError:
            # Vanished between the delete request and this query.
            logger.info("broker.destroyed", stream=stream, status="ABSENT")
            return DestroyOutcome(
                stream, StreamStatus.ABSENT, deleted=True, detail="not found after delete"
            )
        except ServiceError as exc:
            logger.warning(
                "broker.delete_unconfirmed",
                stream=stream,
                error=str(exc),
            )
            return DestroyOutcome(
                stream, StreamStatus.UNKNOWN, deleted=False, detail=str(exc)
            )

        if descriptor.status == StreamStatus.DELETED:
            logger.info("broker.destroyed", stream=stream, status="DELETED")
            return DestroyOutcome(stream, StreamStatus.DELETED, deleted=True)

        logger.warning(
            "broker.still_present", stream=stream, status=str(descriptor.status)
        )
        return DestroyOutcome(
            stream,
            descriptor.status,
            deleted=False,
            detail=f"stream reported {descriptor.status} after delete",
        )

    def drop_consumer_state(self, table_name: str) -> str:
        """Delete the consumer-offset table and return its reported status."""
        if self._offset_store is None:
            msg = "No offset store configured; cannot drop consumer state"
            raise ConfigurationError(msg)
        status = self._offset_store.drop_table(table_name)
        self._sleep(self._offsets.settle_seconds)
        return status

    def _drop_state_quietly(self, table_name: str) -> None:
        try:
            self.drop_consumer_state(table_name)
        except ResourceNotFoundError:
            logger.info("offsets.table_already_absent", table=table_name)
        except HarnessError as exc:
            logger.warning("offsets.drop_failed", table=table_name, error=str(exc))

    # -- Produce / consume -----------------------------------------------------

    def append_event(self, stream: str, payload: Payload) -> AppendResult:
        """Append one event under a fresh random partition key."""
        record = self._client.put(stream, encode_payload(payload), str(uuid.uuid4()))
        logger.debug(
            "stream.event_appended",
            stream=stream,
            shard=record.shard_id,
            sequence_number=record.sequence_number,
        )
        return AppendResult(record.sequence_number, 0, record.shard_id)

    def consume_event(
        self,
        stream_config: StreamConfig,
        consumer_config: ConsumerConfig,
        stream: str | None = None,
    ) -> list[dict[str, Any]]:
        """Read one batch from a shard, tolerating a single replication miss.

        An empty first fetch is followed by exactly one backoff sleep and one
        more fetch at the same iterator; whatever that returns is the result.
        """
        stream = stream or stream_config.name
        shard_id = consumer_config.partition_id
        iterator = self._client.open_shard_iterator(
            stream,
            shard_id,
            consumer_config.iterator_strategy,
            starting_sequence_number=consumer_config.starting_sequence_number,
            timestamp=consumer_config.timestamp,
        )
        batch_size = self._consume.batch_size
        logger.info(
            "stream.consuming",
            stream=stream,
            shard=shard_id,
            strategy=str(consumer_config.iterator_strategy),
        )

        records = self._client.get_batch(iterator, batch_size, shard_id=shard_id)
        if not records:
            logger.debug(
                "stream.consume_backoff",
                stream=stream,
                shard=shard_id,
                seconds=self._consume.backoff_seconds,
            )
            self._sleep(self._consume.backoff_seconds)
            records = self._client.get_batch(iterator, batch_size, shard_id=shard_id)

        return [decode_record(stream, r) for r in records]

    # -- Internals -------------------------------------------------------------

    def _observe(self, stream: str, expected: StreamStatus) -> StreamStatus:
        """One reconciliation poll; not-found maps to ABSENT."""
        try:
            status = self._client.describe(stream).status
        except ResourceNotFoundError:
            logger.info(
                "reconcile.not_found", stream=stream, expected=str(expected)
            )
            return StreamStatus.ABSENT
        except ServiceError as exc:
            logger.warning(
                "reconcile.describe_failed",
                stream=stream,
                expected=str(expected),
                error=str(exc),
            )
            return StreamStatus.UNKNOWN
        logger.info(
            "reconcile.polled", stream=stream, status=str(status), expected=str(expected)
        )
        return status
