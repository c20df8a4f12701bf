"""StreamClient implementation for Amazon Kinesis."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog

from stream_harness.config.models import AwsConfig, IteratorStrategy
from stream_harness.streams.base import EventRecord, StreamDescriptor, StreamStatus
from stream_harness.streams.kinesis.errors import acknowledged, service_call
from stream_harness.streams.kinesis.session import build_client

logger = structlog.get_logger()


class KinesisStreamClient:
    """Thin request/response facade over the Kinesis Data Streams API.

    Shapes requests, unwraps responses and translates botocore errors.  It
    never retries; the boto3 client is created on first use.
    """

    def __init__(self, config: AwsConfig | None = None) -> None:
        self._config = config or AwsConfig()
        self._client = None

    def _get_client(self):  # noqa: ANN202
        if self._client is None:
            self._client = build_client("kinesis", self._config)
        return self._client

    def create(self, name: str, partition_count: int) -> bool:
        client = self._get_client()
        with service_call("CreateStream", name):
            resp = client.create_stream(StreamName=name, ShardCount=partition_count)
        ok = acknowledged(resp)
        logger.info(
            "kinesis.create_requested",
            stream=name,
            shards=partition_count,
            acknowledged=ok,
        )
        return ok

    def describe(self, name: str) -> StreamDescriptor:
        """Describe *name*, following shard pagination to a complete list."""
        client = self._get_client()
        kwargs: dict[str, Any] = {"StreamName": name}
        shard_ids: list[str] = []
        while True:
            with service_call("DescribeStream", name):
                resp = client.describe_stream(**kwargs)
            description = resp["StreamDescription"]
            shard_ids.extend(s["ShardId"] for s in description.get("Shards", []))
            if not description.get("HasMoreShards") or not shard_ids:
                break
            kwargs["ExclusiveStartShardId"] = shard_ids[-1]

        return StreamDescriptor(
            name=description.get("StreamName", name),
            shard_ids=tuple(shard_ids),
            status=StreamStatus.from_remote(description.get("StreamStatus")),
        )

    def delete(self, name: str) -> bool:
        client = self._get_client()
        with service_call("DeleteStream", name):
            resp = client.delete_stream(StreamName=name, EnforceConsumerDeletion=True)
        ok = acknowledged(resp)
        logger.info("kinesis.delete_requested", stream=name, acknowledged=ok)
        return ok

    def put(self, name: str, data: bytes, partition_key: str) -> EventRecord:
        client = self._get_client()
        with service_call("PutRecord", name):
            resp = client.put_record(
                StreamName=name,
                Data=data,
                PartitionKey=partition_key,
            )
        return EventRecord(
            sequence_number=resp["SequenceNumber"],
            shard_id=resp["ShardId"],
            data=data,
            partition_key=partition_key,
        )

    def open_shard_iterator(
        self,
        name: str,
        partition_id: str,
        strategy: IteratorStrategy,
        *,
        starting_sequence_number: str | None = None,
        timestamp: datetime | None = None,
    ) -> str:
        client = self._get_client()
        kwargs: dict[str, Any] = {
            "StreamName": name,
            "ShardId": partition_id,
            "ShardIteratorType": str(strategy),
        }
        if starting_sequence_number is not None:
            kwargs["StartingSequenceNumber"] = starting_sequence_number
        if timestamp is not None:
            kwargs["Timestamp"] = timestamp
        with service_call("GetShardIterator", f"{name}/{partition_id}"):
            resp = client.get_shard_iterator(**kwargs)
        return resp["ShardIterator"]

    def get_batch(
        self, iterator: str, max_count: int, *, shard_id: str = ""
    ) -> list[EventRecord]:
        """Fetch up to *max_count* records; GetRecords does not echo the shard."""
        client = self._get_client()
        with service_call("GetRecords", shard_id or "shard-iterator"):
            resp = client.get_records(ShardIterator=iterator, Limit=max_count)
        return [
            EventRecord(
                sequence_number=r["SequenceNumber"],
                shard_id=shard_id,
                data=r.get("Data", b""),
                partition_key=r.get("PartitionKey", ""),
            )
            for r in resp.get("Records", [])
        ]
