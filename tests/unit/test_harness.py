"""Unit tests for the embedded_stream context manager."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from stream_harness.config.models import StreamConfig
from stream_harness.errors import ProvisioningError, ReconciliationTimeoutError
from stream_harness.lifecycle.harness import embedded_stream
from stream_harness.streams.base import DestroyOutcome, StreamDescriptor, StreamStatus

ORDERS = StreamConfig(name="orders", partition_count=2)


@pytest.fixture
def controller() -> MagicMock:
    ctl = MagicMock()
    ctl.start_broker.return_value = StreamDescriptor(
        "orders", ("shardId-000000000000",), StreamStatus.ACTIVE
    )
    ctl.destroy_broker.return_value = DestroyOutcome(
        "orders", StreamStatus.ABSENT, deleted=True
    )
    return ctl


class TestEmbeddedStream:
    def test_yields_descriptor_and_destroys(self, controller):
        with embedded_stream(controller, ORDERS, consumer_state_table="app") as desc:
            assert desc.status == StreamStatus.ACTIVE
            controller.destroy_broker.assert_not_called()

        controller.start_broker.assert_called_once_with(ORDERS)
        controller.destroy_broker.assert_called_once_with(
            ORDERS, consumer_state_table="app"
        )

    def test_start_failure_skips_destroy(self, controller):
        controller.start_broker.side_effect = ReconciliationTimeoutError(
            "orders", "ACTIVE", "CREATING", 6, 45
        )

        with pytest.raises(ReconciliationTimeoutError):
            with embedded_stream(controller, ORDERS):
                pytest.fail("body must not run")
        controller.destroy_broker.assert_not_called()

    def test_body_error_is_not_masked_by_teardown_error(self, controller):
        controller.destroy_broker.side_effect = ProvisioningError("delete refused")

        with pytest.raises(ValueError, match="assertion in test"):
            with embedded_stream(controller, ORDERS):
                raise ValueError("assertion in test")
        controller.destroy_broker.assert_called_once()

    def test_teardown_error_propagates_after_clean_body(self, controller):
        controller.destroy_broker.side_effect = ProvisioningError("delete refused")

        with pytest.raises(ProvisioningError):
            with embedded_stream(controller, ORDERS):
                pass

    def test_undeleted_outcome_does_not_raise(self, controller):
        controller.destroy_broker.return_value = DestroyOutcome(
            "orders", StreamStatus.UNKNOWN, deleted=False, detail="throttled"
        )

        with embedded_stream(controller, ORDERS):
            pass
