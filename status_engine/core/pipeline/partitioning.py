"""Particionado y ejecución por partición.

Cada partición se procesa de principio a fin por un único worker; el orden
solo está garantizado dentro de la partición. La salida se concatena en orden
de clave para que sea estable entre ejecuciones.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Hashable, Iterable, Mapping, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")
K = TypeVar("K", bound=Hashable)


def group_by(items: Iterable[T], key: Callable[[T], K]) -> dict[K, list[T]]:
    """Agrupa preservando el orden de llegada dentro de cada grupo."""
    groups: dict[K, list[T]] = defaultdict(list)
    for item in items:
        groups[key(item)].append(item)
    return dict(groups)


def map_partitions(
    partitions: Mapping[K, Sequence[T]],
    fn: Callable[[K, Sequence[T]], list[R]],
    workers: int = 1,
) -> list[R]:
    """Aplica ``fn`` a cada partición y concatena en orden de clave.

    Una excepción no controlada por ``fn`` aborta toda la etapa.
    """
    keys = sorted(partitions)
    if workers <= 1 or len(keys) <= 1:
        return [r for k in keys for r in fn(k, partitions[k])]

    results: dict[K, list[R]] = {}
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {pool.submit(fn, k, partitions[k]): k for k in keys}
        for fut in as_completed(futures):
            results[futures[fut]] = fut.result()
    logger.debug("map_partitions partitions=%d workers=%d", len(keys), workers)
    return [r for k in keys for r in results[k]]
