"""Error taxonomy of the status engine."""

from __future__ import annotations


class StatusEngineError(Exception):
    """Base class for engine errors."""


class ConfigurationError(StatusEngineError):
    """Missing parameter or reference dataset. Fatal, raised before aggregation."""


class MalformedRecordError(StatusEngineError):
    """An input record failed schema validation. Skipped and counted."""

    def __init__(self, message: str, source: str = "", line: int | None = None):
        super().__init__(message)
        self.source = source
        self.line = line

    def __str__(self) -> str:
        base = super().__str__()
        if self.source and self.line is not None:
            return f"{self.source}:{self.line}: {base}"
        if self.source:
            return f"{self.source}: {base}"
        return base


class CombinationRuleGapError(StatusEngineError):
    """The operations profile has no rule for an observed state pair.

    Fatal for the rollup of one endpoint only.
    """

    def __init__(self, operation: str, a: str, b: str | None = None):
        self.operation = operation
        self.a = a
        self.b = b
        if b is None:
            msg = f"state {a!r} is not defined for operation {operation!r}"
        else:
            msg = f"no rule for {operation}({a}, {b})"
        super().__init__(msg)


class ReferentialGapWarning(UserWarning):
    """A sample references topology or profile data that does not exist.

    Never raised: used as the kind tag of dropped samples in the run summary.
    """
