"""Versioned serialization of attribution records.

Records are stored as compact UTF-8 JSON. The layout is self-describing:
the ``schema_version`` key tags the layout, unknown keys are skipped on
decode, and ``extra`` annotations are carried through untouched (key order
included).
"""

import json
import logging
from typing import Any, Dict, List

from .errors import SchemaError
from .record import CURRENT_SCHEMA_VERSION, AttributionEntry, AttributionRecord

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMA_VERSIONS = frozenset({CURRENT_SCHEMA_VERSION})


def entry_to_dict(entry: AttributionEntry) -> Dict[str, Any]:
    """Serialize a single entry with a fixed key order."""
    return {
        "contributor": entry.contributor,
        "tool": entry.tool,
        "portion": entry.portion,
        "timestamp": entry.timestamp,
        "extra": dict(entry.extra),
    }


def record_to_dict(record: AttributionRecord) -> Dict[str, Any]:
    """Serialize a record to a plain dictionary."""
    return {
        "schema_version": record.schema_version,
        "content_fingerprint": record.content_fingerprint,
        "entries": [entry_to_dict(entry) for entry in record.entries],
    }


def _entry_from_dict(index: int, data: Any) -> AttributionEntry:
    if not isinstance(data, dict):
        raise SchemaError(f"entry {index} is not an object")

    contributor = data.get("contributor")
    if not isinstance(contributor, str) or not contributor:
        raise SchemaError(f"entry {index} has no contributor")

    tool = data.get("tool")
    if tool is not None and not isinstance(tool, str):
        raise SchemaError(f"entry {index} has a non-string tool")

    portion = data.get("portion", 1.0)
    if isinstance(portion, bool) or not isinstance(portion, (int, float)):
        raise SchemaError(f"entry {index} has a non-numeric portion")
    if not (0.0 <= portion <= 1.0):
        raise SchemaError(f"entry {index} portion {portion} is outside [0, 1]")

    timestamp = data.get("timestamp")
    if timestamp is not None and not isinstance(timestamp, str):
        raise SchemaError(f"entry {index} has a non-string timestamp")

    extra = data.get("extra", {})
    if extra is None:
        extra = {}
    if not isinstance(extra, dict):
        raise SchemaError(f"entry {index} extra is not an object")

    return AttributionEntry(
        contributor=contributor,
        tool=tool,
        portion=portion,
        timestamp=timestamp,
        extra=extra,
    )


def record_from_dict(data: Any) -> AttributionRecord:
    """Build a record from a decoded dictionary, validating its structure."""
    if not isinstance(data, dict):
        raise SchemaError("top level is not an object")

    version = data.get("schema_version")
    if version is None:
        raise SchemaError("missing schema_version")
    if isinstance(version, bool) or not isinstance(version, int):
        raise SchemaError("schema_version is not an integer", schema_version=version)
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        raise SchemaError(f"unsupported schema_version {version}", schema_version=version)

    fingerprint = data.get("content_fingerprint")
    if fingerprint is not None and not isinstance(fingerprint, str):
        raise SchemaError("content_fingerprint is not a string", schema_version=version)

    raw_entries = data.get("entries")
    if not isinstance(raw_entries, list):
        raise SchemaError("entries is missing or not a list", schema_version=version)

    entries: List[AttributionEntry] = [
        _entry_from_dict(index, item) for index, item in enumerate(raw_entries)
    ]
    return AttributionRecord(
        entries=entries,
        schema_version=version,
        content_fingerprint=fingerprint,
    )


def encode(record: AttributionRecord) -> bytes:
    """Encode a record to its stored byte form."""
    json_str = json.dumps(
        record_to_dict(record),
        ensure_ascii=False,
        separators=(",", ":"),
        allow_nan=False,
    )
    return json_str.encode("utf-8")


def decode(data: bytes) -> AttributionRecord:
    """Decode stored bytes into a record.

    Raises:
        SchemaError: the bytes are not a recognised record layout.
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise SchemaError("blob is not valid UTF-8") from e

    if not text.strip():
        raise SchemaError("blob is empty")

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaError(f"blob is not valid JSON: {e.msg}") from e

    record = record_from_dict(payload)
    logger.debug(
        "Decoded attribution record",
        extra={"entries": len(record.entries), "schema_version": record.schema_version},
    )
    return record
