"""Batch job package: status detail and endpoint rollup.

Modules:
- config: RunnerConfig dataclass
- loaders: JSON / JSON lines readers for samples, topology and profiles
- sink: SQL and JSON lines sinks (single-commit writes)
- retry: Retry helper for sink transactions
- runner: Orchestrator (run_once)
- cli: CLI entry point (main)
"""

from .config import RunnerConfig
from .runner import run_once
from .cli import main

__all__ = ["RunnerConfig", "run_once", "main"]
