"""Retry helper for sink transactions."""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, TypeVar

from sqlalchemy.exc import OperationalError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_with_retry(fn: Callable[[], T], max_retries: int = 3, base_delay_ms: int = 500) -> T:
    """Ejecuta una transacción completa con retry + exponential backoff.

    Solo se reintentan errores operacionales (conexión caída, deadlock); la
    transacción se repite entera porque la anterior hizo rollback.
    """
    for attempt in range(1, max_retries + 1):
        try:
            return fn()
        except OperationalError as e:
            if attempt >= max_retries:
                logger.error("Sink write failed (attempt %d/%d): %s", attempt, max_retries, e)
                raise
            delay = min(base_delay_ms * (2 ** (attempt - 1)), 5000)
            jitter = random.uniform(0, delay * 0.1)
            total_delay = (delay + jitter) / 1000.0
            logger.warning(
                "Sink write failed (attempt %d/%d), retrying in %.2fs: %s",
                attempt, max_retries, total_delay, e,
            )
            time.sleep(total_delay)
    raise ValueError(f"max_retries must be >= 1, got {max_retries}")
