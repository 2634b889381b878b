# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import time

from flask import Flask, g, request
from prometheus_client import Counter, Gauge, Histogram

from giftdrop.shared.config import load_config

_config = load_config()

REQUEST_LATENCY = Histogram(
    "giftdrop_request_latency_seconds",
    "Request latency",
    labelnames=("endpoint",),
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10),
)
REQUEST_COUNTER = Counter(
    "giftdrop_requests_total",
    "Number of processed requests",
    labelnames=("endpoint", "status"),
)
INVOICE_EVENTS = Counter(
    "giftdrop_invoice_events_total",
    "Invoice lifecycle events",
    labelnames=("event",),
)
CLAIM_OUTCOMES = Counter(
    "giftdrop_claim_outcomes_total",
    "Claim attempts by outcome",
    labelnames=("outcome",),
)
LEDGER_ANOMALIES = Gauge(
    "giftdrop_ledger_anomalies",
    "Claimed units with missing transfer links at the last check",
)
WORKER_GAUGE = Gauge("giftdrop_workers", "Active background workers")


def record_invoice_event(event: str) -> None:
    if _config.observability.metrics_enabled:
        INVOICE_EVENTS.labels(event=event).inc()


def record_claim_outcome(outcome: str) -> None:
    if _config.observability.metrics_enabled:
        CLAIM_OUTCOMES.labels(outcome=outcome).inc()


def configure_request_metrics(app: Flask) -> None:
    if not _config.observability.metrics_enabled:
        return

    @app.before_request
    def _start_timer() -> None:
        g.metrics_start = time.perf_counter()

    @app.after_request
    def _observe(response):
        start = getattr(g, "metrics_start", None)
        endpoint = request.endpoint or "unknown"
        if start is not None:
            REQUEST_LATENCY.labels(endpoint=endpoint).observe(time.perf_counter() - start)
        REQUEST_COUNTER.labels(endpoint=endpoint, status=str(response.status_code)).inc()
        return response


__all__ = [
    "CLAIM_OUTCOMES",
    "INVOICE_EVENTS",
    "LEDGER_ANOMALIES",
    "REQUEST_COUNTER",
    "REQUEST_LATENCY",
    "WORKER_GAUGE",
    "configure_request_metrics",
    "record_claim_outcome",
    "record_invoice_event",
]
