"""Availability profile: reglas por servicio para el rollup de endpoints.

Formato del documento:
{
    "name": "ap1",
    "metric_profile": {"name": "ch.cern.SAM.ROC_CRITICAL"},
    "metric_operation": "AND",
    "profile_operation": "AND",
    "missing_policy": "exclude",
    "groups": [
        {
            "name": "compute",
            "operation": "OR",
            "services": [
                {"name": "CREAM-CE", "operation": "AND"},
                {"name": "ARC-CE", "operation": "OR", "missing_policy": "substitute"}
            ]
        }
    ]
}

``metric_operation`` es el modo por defecto para combinar las métricas de
un endpoint; la ``operation`` de un servicio lo sobrescribe. ``profile_operation``
también se valida contra el operations profile, aunque el job no agrega por grupo.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from ..domain.errors import ConfigurationError
from .operations import OperationsProfile


class MissingPolicy(str, Enum):
    """Trato de una métrica sin registro todavía en un timestamp."""

    EXCLUDE = "exclude"
    SUBSTITUTE = "substitute"

    @classmethod
    def parse(cls, value: Any) -> "MissingPolicy":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"unknown missing_policy {value!r} (expected one of: "
                + ", ".join(p.value for p in cls) + ")"
            )


@dataclass(frozen=True)
class AvailabilityProfile:
    name: str
    metric_profile: str
    metric_operation: str = "AND"
    profile_operation: str = "AND"
    missing_policy: MissingPolicy = MissingPolicy.EXCLUDE
    service_operations: Mapping[str, str] = field(default_factory=dict)
    service_missing_policies: Mapping[str, MissingPolicy] = field(default_factory=dict)

    def operation_for(self, service: str) -> str:
        return self.service_operations.get(service, self.metric_operation)

    def missing_policy_for(self, service: str) -> MissingPolicy:
        return self.service_missing_policies.get(service, self.missing_policy)

    def validate_against(self, ops: OperationsProfile) -> None:
        """Verifica que todas las operaciones referenciadas existan en ``ops``."""
        used = {self.metric_operation, self.profile_operation, *self.service_operations.values()}
        missing = sorted(op for op in used if not ops.has_operation(op))
        if missing:
            raise ConfigurationError(
                f"availability profile {self.name!r} uses operations not defined "
                f"in operations profile {ops.name!r}: {', '.join(missing)}"
            )

    @classmethod
    def from_dict(cls, doc: Mapping[str, Any]) -> "AvailabilityProfile":
        name = str(doc.get("name") or "")
        mp = doc.get("metric_profile")
        metric_profile = str(mp.get("name") if isinstance(mp, Mapping) else (mp or ""))

        service_ops: dict[str, str] = {}
        service_policies: dict[str, MissingPolicy] = {}
        for group in doc.get("groups") or []:
            for svc in group.get("services") or []:
                svc_name = str(svc.get("name") or "").strip()
                if not svc_name:
                    raise ConfigurationError(f"availability profile {name!r} has an unnamed service")
                op = svc.get("operation")
                if op:
                    op = str(op).upper()
                    if service_ops.get(svc_name, op) != op:
                        raise ConfigurationError(
                            f"availability profile {name!r}: conflicting operations for service {svc_name!r}"
                        )
                    service_ops[svc_name] = op
                if svc.get("missing_policy") is not None:
                    service_policies[svc_name] = MissingPolicy.parse(svc["missing_policy"])

        return cls(
            name=name,
            metric_profile=metric_profile,
            metric_operation=str(doc.get("metric_operation") or "AND").upper(),
            profile_operation=str(doc.get("profile_operation") or "AND").upper(),
            missing_policy=MissingPolicy.parse(doc.get("missing_policy") or MissingPolicy.EXCLUDE.value),
            service_operations=MappingProxyType(service_ops),
            service_missing_policies=MappingProxyType(service_policies),
        )
