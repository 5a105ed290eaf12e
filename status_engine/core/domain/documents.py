"""Formas de documento para los destinos status_metrics y status_endpoints.

Los documentos no llevan clave: el almacén asigna el identificador.
"""

from __future__ import annotations

from typing import Any, Mapping

from .errors import MalformedRecordError
from .records import EndpointStatus, StatusMetric

STATUS_METRICS = "status_metrics"
STATUS_ENDPOINTS = "status_endpoints"


def status_metric_document(record: StatusMetric, report: str) -> dict[str, Any]:
    return {
        "report": report,
        "endpoint_group": record.group,
        "service": record.service,
        "hostname": record.hostname,
        "metric": record.metric,
        "status": record.status,
        "timestamp": record.timestamp,
        "date_integer": record.date_integer,
        "time_integer": record.time_integer,
        "prev_status": record.prev_status,
        "prev_ts": record.prev_timestamp,
    }


def endpoint_status_document(record: EndpointStatus, report: str) -> dict[str, Any]:
    return {
        "report": report,
        "endpoint_group": record.group,
        "service": record.service,
        "hostname": record.hostname,
        "status": record.status,
        "timestamp": record.timestamp,
        "date_integer": record.date_integer,
    }


def status_metric_from_document(doc: Mapping[str, Any]) -> StatusMetric:
    try:
        return StatusMetric(
            group=str(doc["endpoint_group"]),
            service=str(doc["service"]),
            hostname=str(doc["hostname"]),
            metric=str(doc["metric"]),
            timestamp=int(doc["timestamp"]),
            status=str(doc["status"]),
            date_integer=int(doc["date_integer"]),
            time_integer=int(doc["time_integer"]),
            prev_status=doc.get("prev_status"),
            prev_timestamp=int(doc["prev_ts"]) if doc.get("prev_ts") is not None else None,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedRecordError(f"invalid {STATUS_METRICS} document: {e}")


def endpoint_status_from_document(doc: Mapping[str, Any]) -> EndpointStatus:
    try:
        return EndpointStatus(
            group=str(doc["endpoint_group"]),
            service=str(doc["service"]),
            hostname=str(doc["hostname"]),
            timestamp=int(doc["timestamp"]),
            status=str(doc["status"]),
            date_integer=int(doc["date_integer"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedRecordError(f"invalid {STATUS_ENDPOINTS} document: {e}")
