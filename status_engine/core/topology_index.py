"""Índice de topología compartido por todos los workers.

Se construye una vez por ejecución a partir de:
- pertenencias endpoint → grupo (filtradas por ``group_type``)
- jerarquía de grupos (group of groups)
- entradas del metric profile activo

Todas las estructuras son inmutables; los workers solo las leen.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from .domain.errors import ConfigurationError
from .domain.topology import GroupHierarchy, MetricProfileEntry, TopologyMembership

logger = logging.getLogger(__name__)

_EMPTY: tuple = ()


@dataclass(frozen=True)
class TopologyIndex:
    """Lookups de solo lectura sobre la topología de la ejecución."""

    group_type: str
    profile: str
    endpoint_groups: Mapping[tuple[str, str], tuple[tuple[str, str], ...]]
    profile_metrics: Mapping[str, frozenset]
    parents: Mapping[str, str]

    def groups_for(self, service: str, hostname: str) -> tuple[tuple[str, str], ...]:
        """(group, group_type) de un endpoint, ordenados por nombre de grupo."""
        return self.endpoint_groups.get((service, hostname), _EMPTY)

    def in_profile(self, service: str, metric: str) -> bool:
        return metric in self.profile_metrics.get(service, frozenset())

    def metrics_for(self, service: str) -> tuple[str, ...]:
        """Métricas que el perfil activo espera para un servicio."""
        return tuple(sorted(self.profile_metrics.get(service, frozenset())))

    def parent_of(self, group: str) -> Optional[str]:
        return self.parents.get(group)


def build_index(
    memberships: Iterable[TopologyMembership],
    hierarchy: Iterable[GroupHierarchy],
    metric_profiles: Iterable[MetricProfileEntry],
    active_profile: str,
    group_type: str,
) -> TopologyIndex:
    """Construye el índice completo (sin actualización incremental).

    Raises:
        ConfigurationError: si ningún endpoint pertenece a ``group_type``, si
            ninguno de esos grupos cuelga de la jerarquía, o si el perfil
            ``active_profile`` no tiene entradas.
    """
    parents: dict[str, str] = {}
    for link in hierarchy:
        current = parents.get(link.child_group)
        if current is not None and current != link.parent_group:
            logger.warning(
                "group_multiple_parents group=%s kept=%s ignored=%s",
                link.child_group, current, link.parent_group,
            )
            continue
        parents[link.child_group] = link.parent_group

    if not parents:
        logger.warning("group_hierarchy_empty: endpoint groups are not checked against a parent group")

    by_endpoint: dict[tuple[str, str], set[tuple[str, str]]] = defaultdict(set)
    matched = 0
    orphaned = 0
    for m in memberships:
        if m.group_type != group_type:
            continue
        matched += 1
        if parents and m.group not in parents:
            orphaned += 1
            continue
        by_endpoint[(m.service, m.hostname)].add((m.group, m.group_type))

    if matched == 0:
        raise ConfigurationError(f"no endpoint group memberships of type {group_type!r}")
    if orphaned:
        logger.warning(
            "topology_orphan_groups type=%s memberships=%d (group without parent)",
            group_type, orphaned,
        )
    if not by_endpoint:
        raise ConfigurationError(
            f"no endpoint group of type {group_type!r} is a child in the group hierarchy"
        )

    metrics: dict[str, set[str]] = defaultdict(set)
    for entry in metric_profiles:
        if entry.profile == active_profile:
            metrics[entry.service].add(entry.metric)
    if not metrics:
        raise ConfigurationError(f"metric profile {active_profile!r} has no entries")

    index = TopologyIndex(
        group_type=group_type,
        profile=active_profile,
        endpoint_groups=MappingProxyType(
            {k: tuple(sorted(v)) for k, v in by_endpoint.items()}
        ),
        profile_metrics=MappingProxyType({k: frozenset(v) for k, v in metrics.items()}),
        parents=MappingProxyType(parents),
    )
    logger.info(
        "topology_index type=%s endpoints=%d groups=%d profile=%s services=%d",
        group_type,
        len(index.endpoint_groups),
        len({g for groups in index.endpoint_groups.values() for g, _ in groups}),
        active_profile,
        len(index.profile_metrics),
    )
    return index
