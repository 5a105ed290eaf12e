"""Detail aggregator: línea de tiempo por (group, service, hostname, metric)."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Optional, Sequence

from ..domain.records import MetricSample, StatusMetric
from ..monitoring.stats import RunSummary
from ..topology_index import TopologyIndex
from .partitioning import group_by, map_partitions

logger = logging.getLogger(__name__)

GAP_METRIC = "metric_not_in_profile"
GAP_ENDPOINT = "endpoint_not_in_topology"
DUPLICATE_TIMESTAMP = "duplicate_timestamp"


def detail_key(record: StatusMetric) -> tuple[str, str, str, str]:
    return (record.group, record.service, record.hostname, record.metric)


def attach_groups(
    samples: Iterable[MetricSample],
    index: TopologyIndex,
    summary: Optional[RunSummary] = None,
) -> list[StatusMetric]:
    """Descarta muestras sin perfil o sin topología y asigna grupo(s).

    Un endpoint en varios grupos produce un registro por grupo. Las muestras
    repetidas (mismo timestamp) se cuentan aquí, una vez por muestra cruda;
    ``link_previous`` las colapsa luego en cada grupo.
    """
    out: list[StatusMetric] = []
    seen: set[tuple[str, str, str, int]] = set()
    for s in samples:
        if not index.in_profile(s.service, s.metric):
            _gap(summary, GAP_METRIC, s)
            continue
        groups = index.groups_for(s.service, s.hostname)
        if not groups:
            _gap(summary, GAP_ENDPOINT, s)
            continue
        raw_key = (*s.key, s.timestamp)
        if raw_key in seen:
            logger.debug(
                "sample_duplicate service=%s hostname=%s metric=%s ts=%d",
                s.service, s.hostname, s.metric, s.timestamp,
            )
            if summary is not None:
                summary.record_malformed(DUPLICATE_TIMESTAMP)
        seen.add(raw_key)
        for group, _group_type in groups:
            out.append(
                StatusMetric(
                    group=group,
                    service=s.service,
                    hostname=s.hostname,
                    metric=s.metric,
                    timestamp=s.timestamp,
                    status=s.status,
                    date_integer=s.date_integer,
                    time_integer=s.time_integer,
                )
            )
    return out


def _gap(summary: Optional[RunSummary], reason: str, s: MetricSample) -> None:
    logger.debug(
        "sample_dropped reason=%s service=%s hostname=%s metric=%s",
        reason, s.service, s.hostname, s.metric,
    )
    if summary is not None:
        summary.record_gap(reason)


def link_previous(records: Sequence[StatusMetric]) -> list[StatusMetric]:
    """Ordena una partición por timestamp y enlaza cada registro con el previo.

    Registros con el mismo timestamp se colapsan en uno (se conserva el de
    mayor estado en orden lexicográfico) para mantener el orden estricto.
    """
    ordered = sorted(records, key=lambda r: (r.timestamp, r.status))
    out: list[StatusMetric] = []
    prev: Optional[StatusMetric] = None
    for r in ordered:
        if prev is not None and r.timestamp == prev.timestamp:
            out.pop()
            prev = out[-1] if out else None
        linked = replace(
            r,
            prev_status=prev.status if prev is not None else None,
            prev_timestamp=prev.timestamp if prev is not None else None,
        )
        out.append(linked)
        prev = linked
    return out


def aggregate_detail(
    samples: Iterable[MetricSample],
    index: TopologyIndex,
    summary: Optional[RunSummary] = None,
    workers: int = 1,
) -> list[StatusMetric]:
    """Muestras crudas → StatusMetric con enlace al estado previo."""
    attached = attach_groups(samples, index, summary)
    partitions = group_by(attached, detail_key)
    if summary is not None:
        summary.add_partitions(len(partitions))
    result = map_partitions(
        partitions,
        lambda _key, records: link_previous(records),
        workers=workers,
    )
    logger.info("detail_aggregated partitions=%d records=%d", len(partitions), len(result))
    return result
