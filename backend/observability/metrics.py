"""
Timing helpers for observability.

- Durations use monotonic time
- One metric = one METRIC_TIMER log event, never aggregated
- Prefer the `timed()` context manager so a timer can't leak
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from observability.logger import log_event


@contextmanager
def timed(
    name: str,
    *,
    request_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> Iterator[dict[str, Any]]:
    """
    Measure the enclosed block and emit one METRIC_TIMER event.

    Yields a mutable details dict so the block can attach results
    (e.g. the parsed sequence number) before the metric is written.
    The metric is emitted even if the block raises.

    Usage:
        with timed("asr_round_trip", request_id=req_id) as extra:
            await conn.send(frame)
            extra["frame_bytes"] = len(frame)
    """
    extra: dict[str, Any] = dict(details or {})
    start_ns = time.monotonic_ns()
    try:
        yield extra
    finally:
        log_event({
            "event_type": "METRIC_TIMER",
            "metric": name,
            "value_ms": (time.monotonic_ns() - start_ns) // 1_000_000,
            "request_id": request_id,
            "details": extra,
        })
