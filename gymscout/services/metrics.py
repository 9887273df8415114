"""CloudWatch custom metrics for external calls.

Every call the API makes to Airtable, the chat model, or Stripe is counted
and timed.  Data points are buffered in memory and pushed to CloudWatch by
a daemon thread every ``FLUSH_INTERVAL_SECONDS``, but only when
``METRICS_ENABLED=true``.  Locally they are just logged at DEBUG.

Usage
-----
>>> from gymscout.services.metrics import metrics, timed_call
>>> metrics.record_success("airtable", "GET Gyms", latency_ms=123.4)
>>> with timed_call("stripe", "checkout.Session.create"):
...     ...
"""

from __future__ import annotations

import atexit
import logging
import os
import threading
import time
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

NAMESPACE = "MuayThaiScout"
FLUSH_INTERVAL_SECONDS = 60
MAX_BATCH_SIZE = 1_000  # CloudWatch API limit per PutMetricData call

REQUEST_COUNT = "ExternalAPI/RequestCount"
ERROR_COUNT = "ExternalAPI/ErrorCount"
LATENCY = "ExternalAPI/Latency"


def _datum(
    name: str,
    service: str,
    extra: tuple[str, str],
    value: float,
    unit: str,
    timestamp: datetime,
) -> dict[str, Any]:
    return {
        "MetricName": name,
        "Dimensions": [
            {"Name": "Service", "Value": service},
            {"Name": extra[0], "Value": extra[1]},
        ],
        "Timestamp": timestamp,
        "Value": value,
        "Unit": unit,
    }


class MetricsClient:
    """Batched CloudWatch metrics publisher."""

    def __init__(self) -> None:
        self._enabled = os.getenv("METRICS_ENABLED", "false").lower() == "true"
        self._buffer: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        self._cw_client = None

        if self._enabled:
            self._start_flush_thread()

    def _get_cw_client(self):
        if self._cw_client is None:
            import boto3

            self._cw_client = boto3.client("cloudwatch")
        return self._cw_client

    # ── Recording ─────────────────────────────────────────────────────

    def record_success(self, service: str, operation: str, latency_ms: float) -> None:
        now = datetime.now(UTC)
        self._extend(
            _datum(REQUEST_COUNT, service, ("Status", "success"), 1, "Count", now),
            _datum(LATENCY, service, ("Operation", operation), latency_ms, "Milliseconds", now),
        )
        logger.debug("Metric: %s %s ok in %.1fms", service, operation, latency_ms)

    def record_failure(
        self,
        service: str,
        operation: str,
        error_type: str,
        latency_ms: float = 0,
    ) -> None:
        now = datetime.now(UTC)
        points = [
            _datum(REQUEST_COUNT, service, ("Status", "failure"), 1, "Count", now),
            _datum(ERROR_COUNT, service, ("ErrorType", error_type), 1, "Count", now),
        ]
        if latency_ms > 0:
            points.append(
                _datum(LATENCY, service, ("Operation", operation), latency_ms, "Milliseconds", now)
            )
        self._extend(*points)
        logger.debug(
            "Metric: %s %s failed (%s) after %.1fms",
            service, operation, error_type, latency_ms,
        )

    # ── Publishing ────────────────────────────────────────────────────

    def flush(self) -> int:
        """Push buffered data points to CloudWatch.  Returns count sent."""
        with self._lock:
            batch, self._buffer = self._buffer, []

        if not batch:
            return 0
        if not self._enabled:
            logger.debug("Dropping %d metrics (METRICS_ENABLED is off)", len(batch))
            return 0

        sent = 0
        try:
            cw = self._get_cw_client()
            for start in range(0, len(batch), MAX_BATCH_SIZE):
                chunk = batch[start : start + MAX_BATCH_SIZE]
                cw.put_metric_data(Namespace=NAMESPACE, MetricData=chunk)
                sent += len(chunk)
            logger.info("Flushed %d metrics to CloudWatch", sent)
        except Exception:
            logger.exception("Failed to flush metrics to CloudWatch")
        return sent

    def _extend(self, *points: dict[str, Any]) -> None:
        with self._lock:
            self._buffer.extend(points)

    def _start_flush_thread(self) -> None:
        def _loop():
            while True:
                time.sleep(FLUSH_INTERVAL_SECONDS)
                try:
                    self.flush()
                except Exception:
                    logger.exception("Metrics flush thread error")

        threading.Thread(target=_loop, daemon=True, name="metrics-flush").start()
        atexit.register(self.flush)
        logger.info("Metrics flush thread started (interval=%ds)", FLUSH_INTERVAL_SECONDS)


class timed_call:
    """Record one external call (success or failure) with its latency.

    Exceptions are recorded under their class name and re-raised unchanged.
    """

    def __init__(self, service: str, operation: str, client: MetricsClient | None = None):
        self._service = service
        self._operation = operation
        self._client = client
        self._t0 = 0.0

    def __enter__(self) -> timed_call:
        self._t0 = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        client = self._client or metrics
        elapsed = (time.perf_counter() - self._t0) * 1000
        if exc_type is None:
            client.record_success(self._service, self._operation, latency_ms=elapsed)
        else:
            client.record_failure(
                self._service, self._operation,
                error_type=exc_type.__name__, latency_ms=elapsed,
            )
        return False


# ── Module-level singleton ──────────────────────────────────────────
metrics = MetricsClient()
