"""Firestore REST payload decoding.

The REST API wraps every field value in a single-key type envelope
(``{"stringValue": "Padron"}``).  These helpers unwrap them into plain
Python values and build :class:`Document` instances.
"""

from __future__ import annotations

import base64
import math
import re
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from humidorsync.models.document import Document

_FRACTION_RE = re.compile(r"\.(\d+)")


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp with up to nanosecond precision into an aware UTC datetime."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # datetime only keeps microseconds.
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _parse_double(value: Any) -> float:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "nan":
            return math.nan
        if lowered in {"infinity", "+infinity"}:
            return math.inf
        if lowered == "-infinity":
            return -math.inf
    return float(value)


def decode_value(value: Mapping[str, Any]) -> Any:
    """Unwrap a single Firestore typed value."""
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return _parse_double(value["doubleValue"])
    if "timestampValue" in value:
        return parse_timestamp(str(value["timestampValue"]))
    if "stringValue" in value:
        return str(value["stringValue"])
    if "bytesValue" in value:
        return base64.b64decode(value["bytesValue"])
    if "referenceValue" in value:
        return str(value["referenceValue"])
    if "geoPointValue" in value:
        point = value["geoPointValue"] or {}
        return {
            "latitude": float(point.get("latitude", 0.0)),
            "longitude": float(point.get("longitude", 0.0)),
        }
    if "arrayValue" in value:
        items = (value["arrayValue"] or {}).get("values", [])
        return [decode_value(item) for item in items]
    if "mapValue" in value:
        return decode_fields((value["mapValue"] or {}).get("fields", {}))
    # Unknown envelope: keep it as delivered.
    return dict(value)


def decode_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {name: decode_value(raw) for name, raw in fields.items()}


def document_id(name: str) -> str:
    """Last path segment of a full resource name."""
    return name.rstrip("/").rsplit("/", 1)[-1]


def build_document(raw: Mapping[str, Any]) -> Document:
    """Build a Document from one REST ``Document`` resource."""
    return Document(id=document_id(str(raw.get("name", ""))), data=decode_fields(raw.get("fields") or {}))


def build_documents(raws: Iterable[Mapping[str, Any]]) -> list[Document]:
    """Build Documents preserving delivery order."""
    return [build_document(raw) for raw in raws]
