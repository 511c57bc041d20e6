"""
Prometheus metrics collection for the BigQuery loader

Tracks how records are routed, how many rows the sink rejects and how
long the insert round-trip takes.
"""
import os
from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Private registry so that tests and embedding applications do not collide
REGISTRY = CollectorRegistry()


# =======================
# RECORD METRICS
# =======================

records_routed_total = Counter(
    name="bqloader_records_routed_total",
    documentation="Total number of records routed to a downstream channel",
    labelnames=["table", "channel"],  # channel: success, failure
    registry=REGISTRY,
)

malformed_records_total = Counter(
    name="bqloader_malformed_records_total",
    documentation="Total number of records that could not be parsed as a JSON object",
    labelnames=["table", "kind"],  # kind: io, syntax, structural
    registry=REGISTRY,
)

row_errors_total = Counter(
    name="bqloader_row_errors_total",
    documentation="Total number of per-row errors returned by the sink",
    labelnames=["table", "reason"],
    registry=REGISTRY,
)

records_requeued_total = Counter(
    name="bqloader_records_requeued_total",
    documentation="Total number of collected records handed back to the source after an aborted batch",
    labelnames=["table"],
    registry=REGISTRY,
)

# =======================
# BATCH METRICS
# =======================

batch_size = Histogram(
    name="bqloader_batch_size_records",
    documentation="Number of records pulled per batch",
    labelnames=["table"],
    buckets=[1, 10, 50, 100, 250, 500, 1000, 5000, 10000],
    registry=REGISTRY,
)

batches_processed_total = Counter(
    name="bqloader_batches_processed_total",
    documentation="Total number of batches processed",
    labelnames=["table", "status"],  # status: inserted, partial, wholesale_failure, skipped, aborted
    registry=REGISTRY,
)

insert_duration_seconds = Histogram(
    name="bqloader_insert_duration_seconds",
    documentation="Time spent in the bulk-insert round-trip in seconds",
    labelnames=["table"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def get_content_type() -> str:
    return CONTENT_TYPE_LATEST


def start_metrics_server(port: Optional[int] = None) -> int:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)

    Returns:
        The port the server listens on
    """
    # Lazy import: the HTTP server is only needed when the endpoint is enabled
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)
    return metrics_port


class track_duration:
    """
    Context manager for tracking operation duration

    Usage:
        with track_duration(insert_duration_seconds, table="ds.events"):
            # do work
            pass
    """

    def __init__(self, histogram: Histogram, **labels):
        self.histogram = histogram
        self.labels = labels
        self.timer = None

    def __enter__(self):
        self.timer = self.histogram.labels(**self.labels).time()
        self.timer.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.timer.__exit__(exc_type, exc_val, exc_tb)
        return False


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """Increment a counter metric, skipping zero increments"""
    if value:
        counter.labels(**labels).inc(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    histogram.labels(**labels).observe(value)


# =======================
# METRICS COLLECTOR CLASS
# =======================

class MetricsCollector:
    """
    Metrics facade used by the insert pipeline.

    Binds the destination table label once so that callers only pass
    the counts.
    """

    def __init__(self, table: str):
        """
        Initialize metrics collector.

        Args:
            table: Destination table label ("dataset.table")
        """
        self.table = table

    def insert_timer(self) -> track_duration:
        return track_duration(insert_duration_seconds, table=self.table)

    def record_malformed(self, kind: str) -> None:
        increment_counter(malformed_records_total, 1, table=self.table, kind=kind)

    def record_row_errors(self, reasons: list[str]) -> None:
        for reason in reasons:
            increment_counter(row_errors_total, 1, table=self.table, reason=reason or "unknown")

    def record_requeued(self, record_count: int) -> None:
        increment_counter(records_requeued_total, record_count, table=self.table)

    def record_batch(self, pulled: int, succeeded: int, failed: int, status: str) -> None:
        """
        Record a finished batch.

        Args:
            pulled: Records pulled from the source
            succeeded: Records routed to success
            failed: Records routed to failure
            status: inserted, partial, wholesale_failure, skipped or aborted
        """
        increment_counter(batches_processed_total, 1, table=self.table, status=status)
        if pulled > 0:
            observe_histogram(batch_size, pulled, table=self.table)
        increment_counter(records_routed_total, succeeded, table=self.table, channel="success")
        increment_counter(records_routed_total, failed, table=self.table, channel="failure")
