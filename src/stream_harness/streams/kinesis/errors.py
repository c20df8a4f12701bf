"""Translate botocore failures into the harness error taxonomy."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    NoRegionError,
    PartialCredentialsError,
    ProfileNotFound,
)

from stream_harness.errors import ConfigurationError, ResourceNotFoundError, ServiceError

NOT_FOUND_CODES = frozenset({"ResourceNotFoundException"})


@contextmanager
def service_call(operation: str, resource: str) -> Iterator[None]:
    """Run an AWS call, re-raising failures as ServiceError / ConfigurationError."""
    try:
        yield
    except ClientError as exc:
        error = exc.response.get("Error", {})
        code = error.get("Code", "")
        message = error.get("Message", "")
        if code in NOT_FOUND_CODES:
            raise ResourceNotFoundError(operation, resource, code, message) from exc
        raise ServiceError(operation, resource, code, message) from exc
    except (
        NoCredentialsError,
        PartialCredentialsError,
        NoRegionError,
        ProfileNotFound,
    ) as exc:
        raise ConfigurationError(f"{operation} on '{resource}': {exc}") from exc
    except BotoCoreError as exc:
        raise ServiceError(operation, resource, type(exc).__name__, str(exc)) from exc


def acknowledged(response: dict) -> bool:
    """True when the response metadata carries HTTP 200."""
    metadata = response.get("ResponseMetadata", {})
    return metadata.get("HTTPStatusCode") == 200
