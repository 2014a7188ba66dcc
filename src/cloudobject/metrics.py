"""Prometheus metrics definitions for cloudobject.

All metrics use the ``cloudobject_`` prefix.  They describe the client's
side of each exchange with the storage service: how many requests were
made per method and status, and how many body bytes went each way.

Metrics are opt-in.  Until ``init_metrics()`` runs the module-level
references stay ``None``, nothing is registered in the global
``prometheus_client`` registry, and the ``record_*`` helpers do nothing.
"""

from __future__ import annotations

from prometheus_client import Counter

# Flag indicating whether metrics have been initialised via init_metrics().
_initialized: bool = False

# ---------------------------------------------------------------------------
# Request counter  (labels: method, status)
# ---------------------------------------------------------------------------
requests_total: Counter | None = None

# ---------------------------------------------------------------------------
# Byte counters
# ---------------------------------------------------------------------------
bytes_sent_total: Counter | None = None
bytes_received_total: Counter | None = None


def init_metrics() -> None:
    """Create and register all Prometheus metrics.

    Safe to call more than once; only the first call registers collectors.
    """
    global _initialized
    global requests_total, bytes_sent_total, bytes_received_total

    if _initialized:
        return

    requests_total = Counter(
        "cloudobject_requests_total",
        "Total requests sent to the storage service by method and status",
        ["method", "status"],
    )

    bytes_sent_total = Counter(
        "cloudobject_bytes_sent_total",
        "Total bytes sent in request bodies",
    )

    bytes_received_total = Counter(
        "cloudobject_bytes_received_total",
        "Total bytes received in response bodies",
    )

    _initialized = True


def record_request(method: str, status: int) -> None:
    if requests_total is not None:
        requests_total.labels(method=method, status=str(status)).inc()


def record_bytes_sent(count: int) -> None:
    if count > 0 and bytes_sent_total is not None:
        bytes_sent_total.inc(count)


def record_bytes_received(count: int) -> None:
    if count > 0 and bytes_received_total is not None:
        bytes_received_total.inc(count)
