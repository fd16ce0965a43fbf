"""Decode JSON request bodies into access requests."""

from __future__ import annotations

from pydantic import TypeAdapter, ValidationError

from .contracts import AccessRequest
from .errors import EmptyInput

_REQUEST = TypeAdapter(tuple[str, ...])
_BATCH = TypeAdapter(list[tuple[str, ...]])


def _require_body(body: bytes | str | None) -> bytes | str:
    if body is None or not body.strip():
        raise EmptyInput("The request body should not be empty")
    return body


def parse_request(body: bytes | str | None) -> AccessRequest:
    """Parse a body such as ``["alice", "data1", "read"]``."""
    body = _require_body(body)
    try:
        return AccessRequest(values=_REQUEST.validate_json(body, strict=True))
    except ValidationError as exc:
        raise EmptyInput(f"Invalid access request: {exc}") from exc


def parse_batch(body: bytes | str | None) -> list[AccessRequest]:
    """Parse a body holding a JSON list of access requests."""
    body = _require_body(body)
    try:
        return [
            AccessRequest(values=values)
            for values in _BATCH.validate_json(body, strict=True)
        ]
    except ValidationError as exc:
        raise EmptyInput(f"Invalid access request batch: {exc}") from exc
