"""JSON payload encoding for appended and consumed events."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from stream_harness.errors import MalformedPayloadError
from stream_harness.streams.base import EventRecord

Payload = str | bytes | Mapping[str, Any]


def encode_payload(payload: Payload) -> bytes:
    """Wrap a payload as bytes; mappings are serialised as JSON objects."""
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, str):
        return payload.encode("utf-8")
    if isinstance(payload, Mapping):
        return json.dumps(dict(payload), separators=(",", ":")).encode("utf-8")
    msg = f"Unsupported payload type: {type(payload).__name__}"
    raise TypeError(msg)


def decode_record(stream: str, record: EventRecord) -> dict[str, Any]:
    """Decode a consumed record into a JSON object."""
    try:
        value = json.loads(record.data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedPayloadError(
            stream, record.shard_id, record.sequence_number, str(exc)
        ) from exc
    if not isinstance(value, dict):
        raise MalformedPayloadError(
            stream,
            record.shard_id,
            record.sequence_number,
            f"expected a JSON object, got {type(value).__name__}",
        )
    return value
