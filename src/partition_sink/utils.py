"""
NDJSON helpers for feeding records from files or stdin.
"""

import base64
import gzip
import json
import sys
from typing import Any, Dict, Iterator

from .errors import InvalidRecordError
from .models import Record, make_record


def iter_ndjson(path: str) -> Iterator[Dict[str, Any]]:
    """Yield one object per non-blank line. '-' reads stdin; '.gz' files are decompressed."""
    if path == "-":
        stream = sys.stdin
        close = False
    elif path.endswith(".gz"):
        stream = gzip.open(path, "rt", encoding="utf-8")
        close = True
    else:
        stream = open(path, "r", encoding="utf-8")
        close = True
    try:
        for lineno, line in enumerate(stream, 1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                raise InvalidRecordError(f"line {lineno}: {e}") from e
    finally:
        if close:
            stream.close()


def record_from_json(obj: Dict[str, Any]) -> Record:
    """Build a Record from {"partition", "key"?, "payload" | "payload_b64"}."""
    if not isinstance(obj, dict) or "partition" not in obj:
        raise InvalidRecordError(f"record requires a partition: {obj!r}")
    if "payload_b64" in obj:
        try:
            payload = base64.b64decode(obj["payload_b64"], validate=True)
        except (ValueError, TypeError) as e:
            raise InvalidRecordError(f"invalid payload_b64: {e}") from e
    elif isinstance(obj.get("payload"), str):
        payload = obj["payload"].encode("utf-8")
    else:
        raise InvalidRecordError(f"record requires a text payload or payload_b64: {obj!r}")
    return make_record(obj["partition"], payload, obj.get("key"))
