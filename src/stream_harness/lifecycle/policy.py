"""Bounded polling for asynchronously-converging remote status.

Control-plane mutations on the streaming service are not immediately visible
to reads, so both "wait until ACTIVE" and "wait until DELETED" are expressed
as a ``RetryPolicy`` driven through one tenacity loop.  The loop polls exactly
``max_attempts`` times with a fixed interval between polls and then fails
with ``ReconciliationTimeoutError``; it never hangs and never gives up early.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from stream_harness.config.models import ReconcileConfig
from stream_harness.errors import ReconciliationTimeoutError
from stream_harness.streams.base import StreamStatus

logger = structlog.get_logger()

StatusProbe = Callable[[], StreamStatus]


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """What to wait for and how long to keep polling for it."""

    expected: StreamStatus
    max_attempts: int = 6
    interval_seconds: float = 9.0
    # A not-found describe counts as reaching ``expected``.
    absent_is_success: bool = False

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            msg = f"max_attempts must be >= 1, got {self.max_attempts}"
            raise ValueError(msg)
        if self.interval_seconds < 0:
            msg = f"interval_seconds must be >= 0, got {self.interval_seconds}"
            raise ValueError(msg)

    @classmethod
    def until_active(cls, config: ReconcileConfig) -> RetryPolicy:
        return cls(
            expected=StreamStatus.ACTIVE,
            max_attempts=config.max_iterations,
            interval_seconds=config.wait_seconds,
        )

    @classmethod
    def until_deleted(cls, config: ReconcileConfig) -> RetryPolicy:
        return cls(
            expected=StreamStatus.DELETED,
            max_attempts=config.max_iterations,
            interval_seconds=config.wait_seconds,
            absent_is_success=True,
        )

    def is_satisfied(self, observed: StreamStatus) -> bool:
        if observed == self.expected:
            return True
        return self.absent_is_success and observed == StreamStatus.ABSENT

    @property
    def budget_seconds(self) -> float:
        """Total sleep time before the loop gives up."""
        return (self.max_attempts - 1) * self.interval_seconds


def wait_until(
    probe: StatusProbe,
    policy: RetryPolicy,
    *,
    resource: str,
    sleep: Callable[[float], None] = time.sleep,
) -> StreamStatus:
    """Poll *probe* until *policy* is satisfied; return the satisfying status.

    Exceptions raised by *probe* are not retried and propagate unchanged.
    """

    def _log_wait(retry_state: RetryCallState) -> None:
        observed = retry_state.outcome.result() if retry_state.outcome else None
        logger.info(
            "reconcile.waiting",
            resource=resource,
            observed=str(observed),
            expected=str(policy.expected),
            attempt=retry_state.attempt_number,
            max_attempts=policy.max_attempts,
            waited_seconds=(retry_state.attempt_number - 1) * policy.interval_seconds,
            sleeping=policy.interval_seconds,
        )

    retryer = Retrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_fixed(policy.interval_seconds),
        retry=retry_if_result(lambda status: not policy.is_satisfied(status)),
        before_sleep=_log_wait,
        sleep=sleep,
    )
    try:
        status = retryer(probe)
    except RetryError as exc:
        last = exc.last_attempt
        observed = last.result() if not last.failed else StreamStatus.UNKNOWN
        logger.error(
            "reconcile.timed_out",
            resource=resource,
            expected=str(policy.expected),
            observed=str(observed),
            attempts=last.attempt_number,
        )
        raise ReconciliationTimeoutError(
            resource,
            str(policy.expected),
            str(observed),
            last.attempt_number,
            policy.budget_seconds,
        ) from None

    logger.info(
        "reconcile.converged",
        resource=resource,
        status=str(status),
        expected=str(policy.expected),
    )
    return status
