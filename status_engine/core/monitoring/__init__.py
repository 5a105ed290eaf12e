"""Monitoring - resumen de ejecución y métricas."""

from .stats import RunSummary

__all__ = ["RunSummary"]
