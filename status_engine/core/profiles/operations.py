"""Operations profile: álgebra de combinación de estados.

Formato del documento:
{
    "name": "ops1",
    "available_states": ["OK", "WARNING", "UNKNOWN", "MISSING", "CRITICAL", "DOWNTIME"],
    "defaults": {"down": "DOWNTIME", "missing": "MISSING", "unknown": "UNKNOWN"},
    "operations": [
        {"name": "AND", "truth_table": [{"a": "OK", "b": "OK", "x": "OK"}, ...]},
        {"name": "OR", "truth_table": [...]}
    ]
}

Cada tabla se indexa por el par no ordenado {a, b}: el operador es
conmutativo por construcción. Un par ausente es un hueco del álgebra y se
reporta como CombinationRuleGapError, nunca se adivina.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from ..domain.errors import CombinationRuleGapError, ConfigurationError

logger = logging.getLogger(__name__)


class OperationsProfile:
    """Tabla de verdad por operación sobre un conjunto ordenado de estados."""

    def __init__(
        self,
        name: str,
        states: Iterable[str],
        defaults: Mapping[str, str],
        tables: Mapping[str, Mapping[frozenset, str]],
    ) -> None:
        self.name = name
        self.states = tuple(states)
        self._rank = {s: i for i, s in enumerate(self.states)}
        self.defaults = MappingProxyType(dict(defaults))
        self._tables = MappingProxyType(
            {op.upper(): MappingProxyType(dict(t)) for op, t in tables.items()}
        )

    @property
    def operations(self) -> tuple[str, ...]:
        return tuple(sorted(self._tables))

    @property
    def missing_state(self) -> str:
        """Estado asignado a una métrica sin datos."""
        return self.defaults.get("missing") or self.defaults.get("unknown") or "MISSING"

    def has_state(self, state: str) -> bool:
        return state in self._rank

    def has_operation(self, op: str) -> bool:
        return op.upper() in self._tables

    def combine(self, op: str, a: str, b: str) -> str:
        """Aplica la operación ``op`` al par (a, b)."""
        table = self._tables.get(op.upper())
        if table is None:
            raise CombinationRuleGapError(op, a, b)
        for s in (a, b):
            if s not in self._rank:
                raise CombinationRuleGapError(op, s)
        result = table.get(frozenset((a, b)))
        if result is None:
            raise CombinationRuleGapError(op, a, b)
        return result

    def reduce(self, op: str, states: Iterable[str]) -> str:
        """Combina un multiconjunto de estados con ``op``.

        Los estados se ordenan según el perfil antes del fold, así el
        resultado no depende del orden de llegada.
        """
        items = list(states)
        if not items:
            raise ValueError("cannot reduce an empty set of states")
        for s in items:
            if s not in self._rank:
                raise CombinationRuleGapError(op, s)
        items.sort(key=self._rank.__getitem__)
        result = items[0]
        for s in items[1:]:
            result = self.combine(op, result, s)
        return result

    @classmethod
    def from_dict(cls, doc: Mapping[str, Any]) -> "OperationsProfile":
        name = str(doc.get("name") or "")
        states = doc.get("available_states") or doc.get("states")
        if not states:
            raise ConfigurationError(f"operations profile {name!r} has no available_states")
        states = [str(s) for s in states]
        if len(set(states)) != len(states):
            raise ConfigurationError(f"operations profile {name!r} has duplicate states")
        known = set(states)

        defaults = {str(k): str(v) for k, v in (doc.get("defaults") or {}).items()}
        for kind, state in defaults.items():
            if state not in known:
                raise ConfigurationError(
                    f"operations profile {name!r}: default {kind}={state!r} is not an available state"
                )

        tables: dict[str, dict[frozenset, str]] = {}
        for operation in doc.get("operations") or []:
            op_name = str(operation.get("name") or "").upper()
            if not op_name:
                raise ConfigurationError(f"operations profile {name!r} has an unnamed operation")
            table = tables.setdefault(op_name, {})
            for rule in operation.get("truth_table") or []:
                a, b, x = str(rule.get("a")), str(rule.get("b")), str(rule.get("x"))
                for s in (a, b, x):
                    if s not in known:
                        raise ConfigurationError(
                            f"operations profile {name!r}: {op_name} rule uses unknown state {s!r}"
                        )
                pair = frozenset((a, b))
                if table.get(pair, x) != x:
                    raise ConfigurationError(
                        f"operations profile {name!r}: conflicting {op_name} rules for ({a}, {b})"
                    )
                table[pair] = x
        if not tables:
            raise ConfigurationError(f"operations profile {name!r} defines no operations")

        profile = cls(name=name, states=states, defaults=defaults, tables=tables)
        for op_name in profile.operations:
            gaps = profile.gaps(op_name)
            if gaps:
                logger.warning(
                    "ops_profile_gaps profile=%s op=%s missing_pairs=%d",
                    name, op_name, len(gaps),
                )
        return profile

    def gaps(self, op: str) -> list[tuple[str, str]]:
        """Pares de estados sin regla para ``op``."""
        table = self._tables.get(op.upper(), {})
        missing = []
        for i, a in enumerate(self.states):
            for b in self.states[i:]:
                if frozenset((a, b)) not in table:
                    missing.append((a, b))
        return missing
