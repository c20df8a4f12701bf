"""Error taxonomy for the stream harness.

Setup failures (provisioning, reconciliation) are fatal and abort the calling
test.  ``ServiceError`` is the transient family surfaced by the AWS facades;
the lifecycle controller decides per call site whether to escalate or absorb it.
"""

from __future__ import annotations


class HarnessError(Exception):
    """Base class for every error raised by the harness."""


class ConfigurationError(HarnessError):
    """Raised when configuration, credentials or the AWS profile are unusable."""


class ServiceError(HarnessError):
    """Raised when a call to the remote service fails."""

    def __init__(
        self,
        operation: str,
        resource: str,
        code: str = "",
        message: str = "",
    ) -> None:
        self.operation = operation
        self.resource = resource
        self.code = code
        self.message = message
        detail = f"{code}: {message}" if code else message
        super().__init__(f"{operation} failed for '{resource}' ({detail})")


class ResourceNotFoundError(ServiceError):
    """Raised when the remote resource does not exist (or no longer exists)."""


class ProvisioningError(HarnessError):
    """Raised when a create/delete request is not acknowledged by the service."""


class ReconciliationTimeoutError(HarnessError):
    """Raised when a resource never reaches the expected status in time."""

    def __init__(
        self,
        resource: str,
        expected: str,
        observed: str,
        attempts: int,
        waited_seconds: float,
    ) -> None:
        self.resource = resource
        self.expected = expected
        self.observed = observed
        self.attempts = attempts
        self.waited_seconds = waited_seconds
        super().__init__(
            f"'{resource}' did not become {expected} after {attempts} poll(s) "
            f"in {waited_seconds:g}s (last status: {observed})"
        )


class MalformedPayloadError(HarnessError):
    """Raised when a consumed record cannot be decoded into a JSON object."""

    def __init__(self, stream: str, shard_id: str, sequence_number: str, reason: str):
        self.stream = stream
        self.shard_id = shard_id
        self.sequence_number = sequence_number
        super().__init__(
            f"Record {sequence_number} on {stream}/{shard_id} is malformed: {reason}"
        )
