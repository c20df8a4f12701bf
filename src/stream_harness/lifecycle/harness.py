"""Context manager that brackets test code with a live stream."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import structlog

from stream_harness.config.models import StreamConfig
from stream_harness.errors import HarnessError
from stream_harness.lifecycle.controller import LifecycleController
from stream_harness.streams.base import StreamDescriptor

logger = structlog.get_logger()


@contextmanager
def embedded_stream(
    controller: LifecycleController,
    stream_config: StreamConfig,
    *,
    consumer_state_table: str | None = None,
) -> Iterator[StreamDescriptor]:
    """Start the stream, yield its descriptor, destroy it on exit.

    If the body raised, teardown failures are logged and dropped so the
    body's exception is the one the caller sees.
    """
    descriptor = controller.start_broker(stream_config)
    try:
        yield descriptor
    except BaseException:
        try:
            controller.destroy_broker(
                stream_config, consumer_state_table=consumer_state_table
            )
        except HarnessError as exc:
            logger.warning(
                "harness.teardown_failed", stream=stream_config.name, error=str(exc)
            )
        raise
    else:
        outcome = controller.destroy_broker(
            stream_config, consumer_state_table=consumer_state_table
        )
        if not outcome.deleted:
            logger.warning(
                "harness.stream_left_behind",
                stream=outcome.stream,
                status=str(outcome.status),
                detail=outcome.detail,
            )
