"""Registros de topología y perfil de métricas (datos de referencia).

Se cargan una vez por ejecución y se comparten de solo lectura.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .errors import MalformedRecordError


def _required(row: Mapping[str, Any], *names: str) -> str:
    for name in names:
        value = row.get(name)
        if value is not None and str(value).strip():
            return str(value).strip()
    raise MalformedRecordError(f"missing field {names[0]!r}")


@dataclass(frozen=True)
class TopologyMembership:
    """Pertenencia de un endpoint (service, hostname) a un grupo."""

    group: str
    service: str
    hostname: str
    group_type: str

    @classmethod
    def from_dict(cls, row: Mapping[str, Any]) -> "TopologyMembership":
        return cls(
            group=_required(row, "group", "endpoint_group"),
            service=_required(row, "service"),
            hostname=_required(row, "hostname"),
            group_type=_required(row, "type", "group_type"),
        )


@dataclass(frozen=True)
class GroupHierarchy:
    """Relación grupo padre → grupo hijo (group of groups)."""

    parent_group: str
    child_group: str
    group_of_groups_type: str

    @classmethod
    def from_dict(cls, row: Mapping[str, Any]) -> "GroupHierarchy":
        return cls(
            parent_group=_required(row, "group", "parent_group"),
            child_group=_required(row, "subgroup", "child_group"),
            group_of_groups_type=_required(row, "type", "group_of_groups_type"),
        )


@dataclass(frozen=True)
class MetricProfileEntry:
    """Una métrica declarada para un servicio dentro de un perfil."""

    profile: str
    service: str
    metric: str

    @classmethod
    def from_dict(cls, row: Mapping[str, Any]) -> "MetricProfileEntry":
        return cls(
            profile=_required(row, "profile", "profile_name"),
            service=_required(row, "service"),
            metric=_required(row, "metric"),
        )
