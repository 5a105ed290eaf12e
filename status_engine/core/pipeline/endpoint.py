"""Endpoint aggregator: un estado combinado por endpoint y timestamp."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from ..domain.errors import CombinationRuleGapError
from ..domain.records import EndpointStatus, StatusMetric, date_integer_of
from ..monitoring.stats import RunSummary
from ..profiles.availability import AvailabilityProfile
from ..profiles.evaluator import evaluate
from ..profiles.operations import OperationsProfile
from ..topology_index import TopologyIndex
from .partitioning import group_by, map_partitions

logger = logging.getLogger(__name__)


def endpoint_key(record: StatusMetric) -> tuple[str, str, str]:
    return (record.group, record.service, record.hostname)


def rollup_endpoint(
    key: tuple[str, str, str],
    records: Sequence[StatusMetric],
    index: TopologyIndex,
    ops: OperationsProfile,
    avail: AvailabilityProfile,
) -> list[EndpointStatus]:
    """Rollup de una partición (group, service, hostname).

    Para cada timestamp distinto se toma el último estado conocido de cada
    métrica a esa fecha (registro con timestamp <= t) y se combinan con la
    operación del servicio.

    Raises:
        CombinationRuleGapError: el operations profile no cubre un par.
    """
    group, service, hostname = key
    ordered = sorted(records, key=lambda r: (r.metric, r.timestamp))

    timelines = group_by(ordered, lambda r: r.metric)
    dates: dict[int, int] = {}
    for r in ordered:
        dates.setdefault(r.timestamp, r.date_integer)

    cursors = {metric: 0 for metric in timelines}
    current: dict[str, str] = {}
    expected = index.metrics_for(service)

    out: list[EndpointStatus] = []
    for ts in sorted(dates):
        for metric, timeline in timelines.items():
            i = cursors[metric]
            while i < len(timeline) and timeline[i].timestamp <= ts:
                current[metric] = timeline[i].status
                i += 1
            cursors[metric] = i
        status = evaluate(current, service, ops, avail, expected)
        out.append(
            EndpointStatus(
                group=group,
                service=service,
                hostname=hostname,
                timestamp=ts,
                status=status,
                date_integer=dates[ts] or date_integer_of(ts),
            )
        )
    return out


def aggregate_endpoint(
    detail: Iterable[StatusMetric],
    index: TopologyIndex,
    ops: OperationsProfile,
    avail: AvailabilityProfile,
    summary: Optional[RunSummary] = None,
    workers: int = 1,
) -> list[EndpointStatus]:
    """StatusMetric → EndpointStatus, aislando fallos por partición."""

    def _run(key: tuple[str, str, str], records: Sequence[StatusMetric]) -> list[EndpointStatus]:
        try:
            return rollup_endpoint(key, records, index, ops, avail)
        except CombinationRuleGapError as e:
            logger.error(
                "endpoint_rollup_failed group=%s service=%s hostname=%s err=%s",
                key[0], key[1], key[2], e,
            )
            if summary is not None:
                summary.record_rule_gap(e.operation)
            return []

    partitions = group_by(detail, endpoint_key)
    if summary is not None:
        summary.add_partitions(len(partitions))
    result = map_partitions(partitions, _run, workers=workers)
    logger.info("endpoint_aggregated partitions=%d records=%d", len(partitions), len(result))
    return result
