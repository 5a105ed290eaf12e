"""Lectura de entradas del job: muestras, topología y perfiles.

Formatos aceptados para listas de registros:
- JSON lines (un objeto por línea)
- Un array JSON
- Un objeto con la lista en ``data`` (respuestas de la API de perfiles)

Los registros inválidos se cuentan en el RunSummary y se saltan.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, TypeVar

import orjson
from pydantic import ValidationError

from ...core.domain.errors import ConfigurationError, MalformedRecordError
from ...core.domain.records import MetricSample
from ...core.domain.topology import GroupHierarchy, MetricProfileEntry, TopologyMembership
from ...core.monitoring.stats import RunSummary
from ...core.profiles.availability import AvailabilityProfile
from ...core.profiles.operations import OperationsProfile

logger = logging.getLogger(__name__)

T = TypeVar("T")


def iter_rows(path: str) -> Iterator[tuple[int, Any]]:
    """Itera (línea, objeto). Las líneas JSON inválidas se entregan como
    MalformedRecordError en lugar del objeto."""
    raw = Path(path).read_bytes()
    try:
        doc = orjson.loads(raw)
    except orjson.JSONDecodeError:
        doc = None
    else:
        if isinstance(doc, dict) and isinstance(doc.get("data"), list):
            doc = doc["data"]
        if isinstance(doc, list):
            for i, row in enumerate(doc, start=1):
                yield i, row
            return
        if isinstance(doc, dict):
            yield 1, doc
            return

    for i, line in enumerate(raw.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            yield i, orjson.loads(line)
        except orjson.JSONDecodeError as e:
            yield i, MalformedRecordError(f"invalid JSON: {e}", source=path, line=i)


def _load_rows(
    path: str,
    parse: Callable[[dict], T],
    summary: Optional[RunSummary],
    source: str,
) -> list[T]:
    out: list[T] = []
    skipped = 0
    for line, row in iter_rows(path):
        try:
            if isinstance(row, MalformedRecordError):
                raise row
            if not isinstance(row, dict):
                raise MalformedRecordError("record is not an object", source=path, line=line)
            out.append(parse(row))
        except MalformedRecordError as e:
            skipped += 1
            logger.debug("record_skipped source=%s err=%s", source, e)
            if summary is not None:
                summary.record_malformed(source)
        except ValidationError as e:
            skipped += 1
            logger.debug(
                "record_skipped source=%s line=%d errors=%d", source, line, e.error_count()
            )
            if summary is not None:
                summary.record_malformed(source)
    if skipped:
        logger.warning("records_skipped source=%s path=%s skipped=%d", source, path, skipped)
    logger.info("records_loaded source=%s path=%s loaded=%d", source, path, len(out))
    return out


def load_samples(path: str, summary: Optional[RunSummary] = None, source: str = "mdata") -> list[MetricSample]:
    return _load_rows(path, MetricSample.model_validate, summary, source)


def load_memberships(path: str, summary: Optional[RunSummary] = None) -> list[TopologyMembership]:
    return _load_rows(path, TopologyMembership.from_dict, summary, "egp")


def load_hierarchy(path: str, summary: Optional[RunSummary] = None) -> list[GroupHierarchy]:
    return _load_rows(path, GroupHierarchy.from_dict, summary, "ggp")


def load_metric_profiles(path: str, summary: Optional[RunSummary] = None) -> list[MetricProfileEntry]:
    return _load_rows(path, MetricProfileEntry.from_dict, summary, "mps")


def _load_document(path: str, kind: str) -> dict:
    try:
        doc = orjson.loads(Path(path).read_bytes())
    except orjson.JSONDecodeError as e:
        raise ConfigurationError(f"{kind} {path} is not valid JSON: {e}")
    if isinstance(doc, dict) and isinstance(doc.get("data"), list):
        doc = doc["data"][0] if doc["data"] else None
    if not isinstance(doc, dict):
        raise ConfigurationError(f"{kind} {path} does not contain a profile object")
    return doc


def load_ops_profile(path: str) -> OperationsProfile:
    return OperationsProfile.from_dict(_load_document(path, "operations profile"))


def load_availability_profile(path: str) -> AvailabilityProfile:
    return AvailabilityProfile.from_dict(_load_document(path, "availability profile"))
