"""Batch runner configuration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ...core.domain.errors import ConfigurationError

# option name → RunnerConfig field, en el orden en que se validan
INPUT_OPTIONS = {
    "mps": "metric_profiles_path",
    "egp": "endpoint_groups_path",
    "ggp": "group_groups_path",
    "mdata": "metric_data_path",
    "pdata": "prev_metric_data_path",
    "ops": "ops_profile_path",
    "aps": "availability_profile_path",
}


@dataclass(frozen=True)
class RunnerConfig:
    """Configuración del job batch de estados."""
    report: str
    egroup_type: str
    metric_profiles_path: str
    endpoint_groups_path: str
    group_groups_path: str
    metric_data_path: str
    prev_metric_data_path: str
    ops_profile_path: str
    availability_profile_path: str
    destination: str
    metric_profile: Optional[str] = None
    workers: int = 1
    metrics_textfile: Optional[str] = None

    def validate(self) -> "RunnerConfig":
        """Verifica parámetros requeridos y rutas de entrada.

        Raises:
            ConfigurationError: antes de cualquier agregación.
        """
        missing = [
            name for name in ("report", "egroup_type", "destination")
            if not getattr(self, name)
        ]
        missing += [opt for opt, attr in INPUT_OPTIONS.items() if not getattr(self, attr)]
        if missing:
            raise ConfigurationError("missing required parameters: " + ", ".join(missing))

        absent = [
            f"{opt}={getattr(self, attr)}"
            for opt, attr in INPUT_OPTIONS.items()
            if not Path(getattr(self, attr)).exists()
        ]
        if absent:
            raise ConfigurationError("input paths not found: " + ", ".join(absent))

        if self.workers < 1:
            raise ConfigurationError(f"workers must be >= 1, got {self.workers}")
        return self
