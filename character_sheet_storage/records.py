"""Character record helpers shared by every backend.

A record is a plain dict: ``id`` and ``ownerId`` are the identity fields,
every other top-level key is payload that storage never interprets.

Both identity fields are immutable once a record exists, so they are
dropped from update payloads rather than written.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .exceptions import ValidationError

ID_FIELD = "id"
OWNER_FIELD = "ownerId"
IDENTITY_FIELDS = (ID_FIELD, OWNER_FIELD)


def strip_identity_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` without ``id`` or ``ownerId``."""
    return {key: value for key, value in data.items() if key not in IDENTITY_FIELDS}


def validate_record_id(record_id: Any) -> str:
    """Raise ValidationError unless ``record_id`` is a non-empty string."""
    if not isinstance(record_id, str) or not record_id:
        raise ValidationError(ID_FIELD, "must be a non-empty string", repr(record_id))
    return record_id


def validate_owner_id(owner_id: Any) -> str:
    """Raise ValidationError unless ``owner_id`` is a non-empty string."""
    if not isinstance(owner_id, str) or not owner_id:
        raise ValidationError(OWNER_FIELD, "must be a non-empty string", repr(owner_id))
    return owner_id


def validate_changes(changes: Any) -> Mapping[str, Any]:
    if not isinstance(changes, Mapping):
        raise ValidationError("payload", "must be a mapping", type(changes).__name__)
    return changes


def build_document(owner_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
    """Build the stored form of a new record, minus its id.

    Any ``id`` in the payload is discarded (ids are minted by the backend)
    and ``ownerId`` always comes from ``owner_id``.

    Raises:
        ValidationError: If owner_id or payload are malformed
    """
    validate_owner_id(owner_id)
    validate_changes(payload)
    document = strip_identity_fields(payload)
    document[OWNER_FIELD] = owner_id
    return document


def shallow_merge(record: Mapping[str, Any], changes: Mapping[str, Any]) -> dict[str, Any]:
    """Overlay top-level keys of ``changes`` onto ``record``.

    Nested values are replaced wholesale, never merged recursively.
    Identity fields of ``record`` are preserved.
    """
    merged = dict(record)
    merged.update(strip_identity_fields(changes))
    return merged


def is_complete_record(data: Any) -> bool:
    """True if ``data`` is a mapping with string ``id`` and ``ownerId``."""
    if not isinstance(data, Mapping):
        return False
    return all(isinstance(data.get(key), str) and data.get(key) for key in IDENTITY_FIELDS)
