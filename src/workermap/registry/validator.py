"""
Record Validator - parse-and-validate boundary for inbound worker payloads.

Turns loosely-shaped client payloads into WorkerRecord instances or raises
InvalidRecordError. Pure functions: no I/O and no access to the registry.
"""

import math
from collections.abc import Mapping
from typing import Any

from workermap.core.exceptions import InvalidRecordError
from workermap.core.models import BoundingBox, Level, WorkerRecord

DEFAULT_MAX_NAME_LENGTH = 200
DEFAULT_MAX_ADDRESS_LENGTH = 400

# Python treats \x1f as whitespace, so normalize_text() strips it from
# every field and it can never appear inside one.
KEY_SEPARATOR = "\x1f"


def normalize_text(value: Any) -> str:
    """
    Coerce a scalar to text, trim it and collapse internal whitespace runs.

    Returns an empty string for values that cannot be coerced
    (None, booleans, containers).
    """
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, str):
        text = value
    elif isinstance(value, (int, float)):
        text = str(value)
    else:
        return ""
    return " ".join(text.split())


def normalize_level(value: Any) -> Level:
    """Map a raw level to the Level enum; unknown or missing values become LOW."""
    return Level.parse(value)


def _coerce_coordinate(value: Any, field: str) -> float:
    if isinstance(value, bool) or value is None:
        raise InvalidRecordError(f"{field} must be a number", field=field, value=value)
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            raise InvalidRecordError(f"{field} must be finite", field=field) from None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise InvalidRecordError(f"{field} must be a number", field=field, value=value) from None
    else:
        raise InvalidRecordError(f"{field} must be a number", field=field, value=value)

    if not math.isfinite(number):
        raise InvalidRecordError(f"{field} must be finite", field=field, value=value)
    return number


def _required_text(raw: Mapping[str, Any], field: str, max_length: int) -> str:
    text = normalize_text(raw.get(field))
    if not text:
        raise InvalidRecordError(f"{field} is required", field=field, value=raw.get(field))
    if len(text) > max_length:
        raise InvalidRecordError(
            f"{field} exceeds {max_length} characters",
            field=field,
            details={"length": len(text)},
        )
    return text


def sanitize(
    raw: Any,
    *,
    bounds: BoundingBox | None = None,
    max_name_length: int = DEFAULT_MAX_NAME_LENGTH,
    max_address_length: int = DEFAULT_MAX_ADDRESS_LENGTH,
) -> WorkerRecord:
    """
    Validate and normalize a raw worker payload.

    Args:
        raw: Client-supplied payload (expected to be a mapping)
        bounds: Geographic box coordinates must fall inside
        max_name_length: Maximum normalized name length
        max_address_length: Maximum normalized address length

    Returns:
        Sanitized WorkerRecord

    Raises:
        InvalidRecordError: If any field is missing, malformed or out of range
    """
    if not isinstance(raw, Mapping):
        raise InvalidRecordError("Worker payload must be an object", value=raw)

    bounds = bounds or BoundingBox()
    name = _required_text(raw, "name", max_name_length)
    address = _required_text(raw, "address", max_address_length)
    lat = _coerce_coordinate(raw.get("lat"), "lat")
    lng = _coerce_coordinate(raw.get("lng"), "lng")

    if not bounds.contains(lat, lng):
        raise InvalidRecordError(
            "Coordinates outside the allowed area",
            field="lat" if not bounds.lat_min <= lat <= bounds.lat_max else "lng",
            details={"lat": lat, "lng": lng, "bounds": bounds.to_dict()},
        )

    return WorkerRecord(
        name=name,
        address=address,
        lat=lat,
        lng=lng,
        level=normalize_level(raw.get("level")),
    )


def make_key(name: str, address: str) -> str:
    """Build the canonical identity key from already-normalized fields."""
    return f"{name.lower()}{KEY_SEPARATOR}{address.lower()}"


def canonical_key(record: WorkerRecord) -> str:
    """Canonical identity key of a sanitized record. Level is not part of identity."""
    return make_key(record.name, record.address)


def identity_key(raw: Any) -> str:
    """
    Compute the canonical key from a payload that only needs name + address.

    Used for removals, where coordinates and level are irrelevant.

    Raises:
        InvalidRecordError: If the payload is not a mapping or either field is empty
    """
    if not isinstance(raw, Mapping):
        raise InvalidRecordError("Worker payload must be an object", value=raw)
    name = normalize_text(raw.get("name"))
    address = normalize_text(raw.get("address"))
    if not name or not address:
        raise InvalidRecordError(
            "name and address are required",
            field="name" if not name else "address",
        )
    return make_key(name, address)
