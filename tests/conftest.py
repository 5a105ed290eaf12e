"""Fixtures compartidas: perfiles, topología y fábricas de registros."""

from __future__ import annotations

import itertools
from pathlib import Path
from typing import Any, Callable, Dict, List

import orjson
import pytest

from status_engine.core.domain.records import MetricSample, StatusMetric
from status_engine.core.domain.topology import GroupHierarchy, MetricProfileEntry, TopologyMembership
from status_engine.core.profiles import AvailabilityProfile, OperationsProfile
from status_engine.core.topology_index import build_index

# 2015-05-01T00:00:00Z
DAY = 1430438400000
MINUTE = 60 * 1000

STATES = ["OK", "WARNING", "UNKNOWN", "MISSING", "CRITICAL", "DOWNTIME"]

JOB_SUBMIT = "emi.cream.CREAMCE-JobSubmit"
CERT_LIFETIME = "hr.srce.CREAMCE-CertLifetime"


def _truth_table(pick: Callable[[str, str], str]) -> List[Dict[str, str]]:
    return [
        {"a": a, "b": b, "x": pick(a, b)}
        for a, b in itertools.combinations_with_replacement(STATES, 2)
    ]


def ops_document() -> Dict[str, Any]:
    """AND: el peor estado domina. OR: el mejor estado basta."""
    rank = STATES.index
    return {
        "name": "ops1",
        "available_states": list(STATES),
        "defaults": {"down": "DOWNTIME", "missing": "MISSING", "unknown": "UNKNOWN"},
        "operations": [
            {"name": "AND", "truth_table": _truth_table(lambda a, b: max(a, b, key=rank))},
            {"name": "OR", "truth_table": _truth_table(lambda a, b: min(a, b, key=rank))},
        ],
    }


def availability_document() -> Dict[str, Any]:
    return {
        "name": "ap1",
        "metric_profile": {"name": "ROC_CRITICAL"},
        "metric_operation": "AND",
        "profile_operation": "AND",
        "groups": [
            {
                "name": "compute",
                "operation": "OR",
                "services": [
                    {"name": "CREAM-CE", "operation": "AND"},
                    {"name": "ARC-CE", "operation": "OR"},
                ],
            },
            {
                "name": "storage",
                "operation": "OR",
                "services": [{"name": "SRM", "operation": "AND", "missing_policy": "substitute"}],
            },
        ],
    }


@pytest.fixture
def ops() -> OperationsProfile:
    return OperationsProfile.from_dict(ops_document())


@pytest.fixture
def avail() -> AvailabilityProfile:
    return AvailabilityProfile.from_dict(availability_document())


@pytest.fixture
def memberships() -> List[TopologyMembership]:
    return [
        TopologyMembership("SITE-A", "CREAM-CE", "ce01.site-a.org", "SITES"),
        TopologyMembership("SITE-A", "SRM", "se01.site-a.org", "SITES"),
        TopologyMembership("SITE-B", "ARC-CE", "arc01.site-b.org", "SITES"),
        TopologyMembership("SITE-B", "CREAM-CE", "ce02.site-b.org", "SITES"),
        TopologyMembership("SVC-GROUP", "CREAM-CE", "ce01.site-a.org", "SERVICEGROUPS"),
    ]


@pytest.fixture
def hierarchy() -> List[GroupHierarchy]:
    return [
        GroupHierarchy("NGI_A", "SITE-A", "NGI"),
        GroupHierarchy("NGI_B", "SITE-B", "NGI"),
    ]


@pytest.fixture
def metric_profiles() -> List[MetricProfileEntry]:
    return [
        MetricProfileEntry("ROC_CRITICAL", "CREAM-CE", JOB_SUBMIT),
        MetricProfileEntry("ROC_CRITICAL", "CREAM-CE", CERT_LIFETIME),
        MetricProfileEntry("ROC_CRITICAL", "SRM", "org.sam.SRM-Put"),
        MetricProfileEntry("ROC_CRITICAL", "SRM", "org.sam.SRM-Get"),
        MetricProfileEntry("ROC_CRITICAL", "ARC-CE", "org.nordugrid.ARC-CE-submit"),
        MetricProfileEntry("OTHER", "CREAM-CE", "emi.cream.glexec.CREAMCE-JobSubmit"),
    ]


@pytest.fixture
def index(memberships, hierarchy, metric_profiles):
    return build_index(memberships, hierarchy, metric_profiles, "ROC_CRITICAL", "SITES")


@pytest.fixture
def sample() -> Callable[..., MetricSample]:
    """Fábrica de MetricSample con valores por defecto."""

    def _make(
        status: str = "OK",
        ts: int = DAY,
        service: str = "CREAM-CE",
        hostname: str = "ce01.site-a.org",
        metric: str = JOB_SUBMIT,
    ) -> MetricSample:
        return MetricSample(service=service, hostname=hostname, metric=metric, status=status, timestamp=ts)

    return _make


@pytest.fixture
def status_metric() -> Callable[..., StatusMetric]:
    """Fábrica de StatusMetric (sin enlace previo)."""

    def _make(
        metric: str,
        status: str,
        ts: int,
        group: str = "SITE-A",
        service: str = "CREAM-CE",
        hostname: str = "ce01.site-a.org",
    ) -> StatusMetric:
        return StatusMetric(
            group=group,
            service=service,
            hostname=hostname,
            metric=metric,
            timestamp=ts,
            status=status,
            date_integer=20150501,
            time_integer=0,
        )

    return _make


def write_jsonl(path: Path, rows: List[Dict[str, Any]]) -> str:
    path.write_bytes(b"".join(orjson.dumps(r) + b"\n" for r in rows))
    return str(path)


def write_json(path: Path, doc: Any) -> str:
    path.write_bytes(orjson.dumps(doc))
    return str(path)
