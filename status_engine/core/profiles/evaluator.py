"""Evaluación de estados de métricas → estado de endpoint."""

from __future__ import annotations

from typing import Iterable, Mapping

from .availability import AvailabilityProfile, MissingPolicy
from .operations import OperationsProfile


def evaluate(
    states_by_metric: Mapping[str, str],
    service: str,
    ops: OperationsProfile,
    avail: AvailabilityProfile,
    expected_metrics: Iterable[str] = (),
) -> str:
    """Combina los estados conocidos de las métricas de un endpoint.

    Con política SUBSTITUTE, cada métrica esperada sin estado recibe el
    estado ``missing`` del operations profile. Con EXCLUDE se ignora.

    Raises:
        CombinationRuleGapError: si el perfil no cubre algún par observado.
        ValueError: si no queda ningún estado que combinar.
    """
    states = dict(states_by_metric)
    if avail.missing_policy_for(service) is MissingPolicy.SUBSTITUTE:
        for metric in expected_metrics:
            states.setdefault(metric, ops.missing_state)
    return ops.reduce(avail.operation_for(service), states.values())
