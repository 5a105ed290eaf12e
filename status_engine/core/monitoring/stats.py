"""Estadísticas de una ejecución del job batch."""

from __future__ import annotations

import threading
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..domain.errors import CombinationRuleGapError, MalformedRecordError, ReferentialGapWarning

MALFORMED = MalformedRecordError.__name__
REFERENTIAL_GAP = ReferentialGapWarning.__name__
RULE_GAP = CombinationRuleGapError.__name__


@dataclass
class RunSummary:
    """Contadores de la ejecución, agrupados por tipo de incidencia.

    Thread-safe: los workers de detalle y endpoint registran en paralelo.
    """

    report: str = ""
    samples_read: int = 0
    carried_forward: int = 0
    status_metrics: int = 0
    status_endpoints: int = 0
    partitions: int = 0
    failures: Counter = field(default_factory=Counter)
    reasons: Counter = field(default_factory=Counter)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: float = 0.0
    _t0: float = field(default_factory=time.monotonic, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def __str__(self) -> str:
        kinds = " ".join(f"{k}={v}" for k, v in sorted(self.failures.items())) or "errors=0"
        return (
            f"RunSummary: report={self.report} samples={self.samples_read} "
            f"carried={self.carried_forward} metrics={self.status_metrics} "
            f"endpoints={self.status_endpoints} {kinds}"
        )

    def record_malformed(self, source: str) -> None:
        self._record(MALFORMED, f"malformed:{source}")

    def record_gap(self, reason: str) -> None:
        self._record(REFERENTIAL_GAP, reason)

    def record_rule_gap(self, operation: str) -> None:
        self._record(RULE_GAP, f"rule_gap:{operation}")

    def add_partitions(self, n: int) -> None:
        with self._lock:
            self.partitions += n

    def _record(self, kind: str, reason: str) -> None:
        with self._lock:
            self.failures[kind] += 1
            self.reasons[reason] += 1

    def count(self, kind: str) -> int:
        return self.failures.get(kind, 0)

    def finish(self) -> "RunSummary":
        self.duration_ms = (time.monotonic() - self._t0) * 1000
        return self

    def to_dict(self) -> dict:
        """Convierte a diccionario."""
        return {
            "report": self.report,
            "samples_read": self.samples_read,
            "carried_forward": self.carried_forward,
            "status_metrics": self.status_metrics,
            "status_endpoints": self.status_endpoints,
            "partitions": self.partitions,
            "failures": dict(self.failures),
            "reasons": dict(self.reasons),
            "started_at": self.started_at.isoformat(),
            "duration_ms": round(self.duration_ms, 1),
        }
