"""DynamoDB store for consumer-offset tables."""

from __future__ import annotations

import structlog

from stream_harness.config.models import AwsConfig
from stream_harness.errors import ProvisioningError
from stream_harness.streams.kinesis.errors import acknowledged, service_call
from stream_harness.streams.kinesis.session import build_client

logger = structlog.get_logger()


class DynamoDBOffsetStore:
    """Manages the DynamoDB tables Kinesis consumers keep their offsets in.

    The harness only ever drops these tables; reading and writing offsets is
    left to the consumer library under test.
    """

    def __init__(self, config: AwsConfig | None = None) -> None:
        self._config = config or AwsConfig()
        self._client = None

    def _get_client(self):  # noqa: ANN202
        if self._client is None:
            self._client = build_client("dynamodb", self._config)
        return self._client

    def drop_table(self, table_name: str) -> str:
        """Delete *table_name* and return the status from the delete response."""
        client = self._get_client()
        with service_call("DeleteTable", table_name):
            resp = client.delete_table(TableName=table_name)
        if not acknowledged(resp):
            msg = f"Delete of offset table '{table_name}' was not acknowledged"
            raise ProvisioningError(msg)
        status = resp.get("TableDescription", {}).get("TableStatus", "DELETING")
        logger.info("offsets.table_dropped", table=table_name, status=status)
        return status
