"""
JSONL event logger.

- One JSON object per line on stdout
- No buffering, no batching
- ts_ms stamped on every record that does not carry one
- Bytes values are summarized, never dumped
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Callable, Mapping


# ------------------------------------------------------------------
# Explicit output sink (patchable in tests)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

_print: Callable[[str], None] = _stdout_print


def _default(value: Any) -> Any:
    # Frames and audio are logged by size only
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {"bytes": len(value)}
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def log_event(event: Mapping[str, Any]) -> None:
    """
    Write a single JSONL event to stdout.

    The caller supplies event_type and any correlation fields
    (request_id, seq, ...). This function:
    - Adds ts_ms if missing
    - Serializes to JSON
    - Writes exactly one line
    - Never raises
    """
    record = dict(event)
    record.setdefault("ts_ms", int(time.time() * 1000))

    try:
        line = json.dumps(record, ensure_ascii=False, separators=(",", ":"), default=_default)
    except (TypeError, ValueError) as e:
        # Logging must never break a session
        fallback: dict[str, Any] = {
            "ts_ms": record.get("ts_ms"),
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(event),
        }
        line = json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))

    _print(line)
