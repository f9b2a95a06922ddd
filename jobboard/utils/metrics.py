"""
In-process counters and duration histograms for outbound calls
(email transports) and notification outcomes. Emitted as structured log
lines and readable through get_snapshot().
"""

import time
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Dict, Any

from jobboard.utils.logger import get_logger

logger = get_logger("metrics")

_counters: Dict[str, int] = defaultdict(int)
_histograms: Dict[str, list] = defaultdict(list)

MAX_HISTOGRAM_SAMPLES = 500  # Rolling window


def inc(name: str, value: int = 1) -> None:
    """Increment a counter."""
    _counters[name] += value


def observe(name: str, value: float) -> None:
    """Record a histogram observation."""
    bucket = _histograms[name]
    bucket.append(value)
    if len(bucket) > MAX_HISTOGRAM_SAMPLES:
        _histograms[name] = bucket[-MAX_HISTOGRAM_SAMPLES:]


@asynccontextmanager
async def track_duration(service: str, operation: str = "call"):
    """
    Track call duration and success/failure of the wrapped block.

        async with track_duration("email", "http"):
            await client.post(...)
    """
    start = time.monotonic()
    status = "success"
    try:
        yield
    except Exception:
        status = "error"
        raise
    finally:
        duration_ms = (time.monotonic() - start) * 1000
        observe(f"{service}.{operation}.duration_ms", duration_ms)
        inc(f"{service}.{operation}.{status}")
        log_fn = logger.info if status == "success" else logger.warning
        log_fn(
            "metrics.call",
            extra={
                "transport": f"{service}.{operation}",
                "duration_ms": round(duration_ms, 1),
                "status": status,
            },
        )


def get_counter(name: str) -> int:
    return _counters.get(name, 0)


def get_snapshot() -> Dict[str, Any]:
    """Return a snapshot of all counters and histogram summaries."""
    snapshot: Dict[str, Any] = {"counters": dict(_counters)}

    summaries = {}
    for name, samples in _histograms.items():
        if samples:
            sorted_s = sorted(samples)
            summaries[name] = {
                "count": len(sorted_s),
                "p50": round(sorted_s[int(len(sorted_s) * 0.5)], 1),
                "p95": round(sorted_s[min(int(len(sorted_s) * 0.95), len(sorted_s) - 1)], 1),
                "max": round(sorted_s[-1], 1),
            }
    snapshot["histograms"] = summaries
    return snapshot


def reset() -> None:
    """Reset all metrics (used by tests)."""
    _counters.clear()
    _histograms.clear()
