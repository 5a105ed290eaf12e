"""Domain layer - Registros, topología, documentos y errores."""

from .errors import (
    CombinationRuleGapError,
    ConfigurationError,
    MalformedRecordError,
    ReferentialGapWarning,
    StatusEngineError,
)
from .records import EndpointStatus, MetricSample, StatusMetric
from .topology import GroupHierarchy, MetricProfileEntry, TopologyMembership

__all__ = [
    "CombinationRuleGapError",
    "ConfigurationError",
    "MalformedRecordError",
    "ReferentialGapWarning",
    "StatusEngineError",
    "EndpointStatus",
    "MetricSample",
    "StatusMetric",
    "GroupHierarchy",
    "MetricProfileEntry",
    "TopologyMembership",
]
