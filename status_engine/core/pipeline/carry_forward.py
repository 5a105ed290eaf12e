"""Selección del último estado conocido del periodo anterior."""

from __future__ import annotations

from typing import Iterable

from ..domain.records import MetricSample


def select_carry_forward(prior_samples: Iterable[MetricSample]) -> list[MetricSample]:
    """Una muestra por (service, hostname, metric): la de mayor timestamp.

    Empates: se conserva la primera en orden de entrada. Las claves sin datos
    en el periodo anterior no aportan nada. Salida ordenada por clave.
    """
    latest: dict[tuple[str, str, str], MetricSample] = {}
    for sample in prior_samples:
        current = latest.get(sample.key)
        if current is None or sample.timestamp > current.timestamp:
            latest[sample.key] = sample
    return [latest[k] for k in sorted(latest)]
