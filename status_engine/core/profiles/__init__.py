"""Perfiles de combinación de estados."""

from .availability import AvailabilityProfile, MissingPolicy
from .evaluator import evaluate
from .operations import OperationsProfile

__all__ = ["AvailabilityProfile", "MissingPolicy", "OperationsProfile", "evaluate"]
