"""Exportación Prometheus del resumen de ejecución (textfile collector)."""

from __future__ import annotations

import logging
from typing import Optional

from prometheus_client import CollectorRegistry, Gauge, write_to_textfile

from .stats import MALFORMED, REFERENTIAL_GAP, RULE_GAP, RunSummary

logger = logging.getLogger(__name__)


def build_registry(summary: RunSummary, registry: Optional[CollectorRegistry] = None) -> CollectorRegistry:
    """Registra los gauges de la ejecución en un registry propio."""
    registry = registry or CollectorRegistry()
    records = Gauge(
        "status_batch_records",
        "Records handled by the last status batch run",
        ["report", "kind"],
        registry=registry,
    )
    errors = Gauge(
        "status_batch_errors",
        "Skipped records and failed partitions of the last run, by kind",
        ["report", "kind"],
        registry=registry,
    )
    duration = Gauge(
        "status_batch_duration_seconds",
        "Duration of the last status batch run",
        ["report"],
        registry=registry,
    )
    last_success = Gauge(
        "status_batch_last_success_timestamp_seconds",
        "Unix time of the last completed status batch run",
        ["report"],
        registry=registry,
    )

    report = summary.report
    records.labels(report, "samples_read").set(summary.samples_read)
    records.labels(report, "carried_forward").set(summary.carried_forward)
    records.labels(report, "status_metrics").set(summary.status_metrics)
    records.labels(report, "status_endpoints").set(summary.status_endpoints)
    for kind in (MALFORMED, REFERENTIAL_GAP, RULE_GAP):
        errors.labels(report, kind).set(summary.count(kind))
    duration.labels(report).set(summary.duration_ms / 1000.0)
    last_success.labels(report).set_to_current_time()
    return registry


def write_textfile(summary: RunSummary, path: str) -> None:
    write_to_textfile(path, build_registry(summary))
    logger.info("metrics_textfile path=%s", path)
