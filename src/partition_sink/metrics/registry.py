"""
Sink metrics registered in the Prometheus global REGISTRY.
Expose them with prometheus_client.start_http_server or any WSGI/ASGI exporter.
"""

from prometheus_client import Counter, Gauge, Histogram


# --- Ingestion / dispatch ---

RECORDS_INGESTED_TOTAL = Counter(
    "partition_sink_records_ingested_total",
    "Total number of records accepted into partition buffers",
)

BATCHES_DISPATCHED_TOTAL = Counter(
    "partition_sink_batches_dispatched_total",
    "Total number of batches handed to the publisher",
    ["trigger", "outcome"],
)

BATCH_SIZE = Histogram(
    "partition_sink_batch_size",
    "Number of records per dispatched batch",
    buckets=[1, 10, 50, 100, 250, 500, 750, 1000],
)

OUTSTANDING_HANDLES = Gauge(
    "partition_sink_outstanding_handles",
    "Publish operations dispatched but not yet confirmed by a checkpoint",
)

# --- Checkpoint ---

FLUSH_TOTAL = Counter(
    "partition_sink_flush_total",
    "Total number of checkpoint flushes by outcome",
    ["outcome"],
)

FLUSH_LATENCY_MS = Histogram(
    "partition_sink_flush_latency_ms",
    "Checkpoint flush latency in milliseconds",
    buckets=[1, 5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000],
)


class MetricsRegistry:
    """Centralized access to the sink metrics."""

    records_ingested_total = RECORDS_INGESTED_TOTAL
    batches_dispatched_total = BATCHES_DISPATCHED_TOTAL
    batch_size = BATCH_SIZE
    outstanding_handles = OUTSTANDING_HANDLES
    flush_total = FLUSH_TOTAL
    flush_latency_ms = FLUSH_LATENCY_MS


# Singleton instance
metrics_registry = MetricsRegistry()
