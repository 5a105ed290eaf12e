"""Batch runner orchestrator: status detail + endpoint rollup."""

from __future__ import annotations

import logging
from typing import Optional

from ...core.domain.errors import ConfigurationError
from ...core.monitoring.metrics import write_textfile
from ...core.monitoring.stats import RunSummary
from ...core.pipeline import aggregate_detail, aggregate_endpoint, select_carry_forward
from ...core.profiles import AvailabilityProfile, OperationsProfile
from ...core.topology_index import TopologyIndex, build_index
from .config import RunnerConfig
from .loaders import (
    load_availability_profile,
    load_hierarchy,
    load_memberships,
    load_metric_profiles,
    load_ops_profile,
    load_samples,
)
from .sink import StatusSink, open_sink

logger = logging.getLogger(__name__)


def load_reference(
    cfg: RunnerConfig, summary: Optional[RunSummary] = None,
) -> tuple[TopologyIndex, OperationsProfile, AvailabilityProfile]:
    """Carga perfiles y topología; se comparten de solo lectura con los workers."""
    ops = load_ops_profile(cfg.ops_profile_path)
    avail = load_availability_profile(cfg.availability_profile_path)
    avail.validate_against(ops)

    active_profile = cfg.metric_profile or avail.metric_profile
    if not active_profile:
        raise ConfigurationError(
            "no active metric profile: pass --metric-profile or set metric_profile in the availability profile"
        )

    index = build_index(
        load_memberships(cfg.endpoint_groups_path, summary),
        load_hierarchy(cfg.group_groups_path, summary),
        load_metric_profiles(cfg.metric_profiles_path, summary),
        active_profile=active_profile,
        group_type=cfg.egroup_type,
    )
    logger.info(
        "profiles ops=%s states=%d availability=%s metric_profile=%s operation=%s",
        ops.name, len(ops.states), avail.name, active_profile, avail.metric_operation,
    )
    return index, ops, avail


def run_once(cfg: RunnerConfig, sink: Optional[StatusSink] = None) -> RunSummary:
    """Una ejecución completa para un periodo de reporte.

    Los errores de configuración abortan antes de agregar; no se escribe
    nada al destino hasta que ambas etapas terminaron.
    """
    cfg.validate()
    summary = RunSummary(report=cfg.report)

    index, ops, avail = load_reference(cfg, summary)
    if sink is None:
        sink = open_sink(cfg.destination)

    current = load_samples(cfg.metric_data_path, summary, source="mdata")
    prior = load_samples(cfg.prev_metric_data_path, summary, source="pdata")
    carried = select_carry_forward(prior)
    summary.samples_read = len(current) + len(prior)
    summary.carried_forward = len(carried)

    detail = aggregate_detail(current + carried, index, summary, workers=cfg.workers)
    endpoints = aggregate_endpoint(detail, index, ops, avail, summary, workers=cfg.workers)

    summary.status_metrics, summary.status_endpoints = sink.write(detail, endpoints, cfg.report)
    summary.finish()

    logger.info(
        "batch_cycle ms=%.1f report=%s samples=%d carried=%d metrics=%d endpoints=%d workers=%d",
        summary.duration_ms, cfg.report, summary.samples_read, summary.carried_forward,
        summary.status_metrics, summary.status_endpoints, cfg.workers,
    )
    for kind, n in sorted(summary.failures.items()):
        logger.warning("batch_skipped kind=%s count=%d", kind, n)
    for reason, n in sorted(summary.reasons.items()):
        logger.info("batch_skipped_reason reason=%s count=%d", reason, n)
    logger.debug("batch_summary %s", summary.to_dict())

    if cfg.metrics_textfile:
        write_textfile(summary, cfg.metrics_textfile)
    return summary
