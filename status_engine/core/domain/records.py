"""Registros de estado: muestras crudas y registros derivados.

- MetricSample: resultado de un probe (entrada, inmutable)
- StatusMetric: estado por métrica con enlace al estado previo
- EndpointStatus: estado combinado por endpoint y timestamp
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

_DATE_KEYS = ("date_integer", "dateInt", "date_int")
_TIME_KEYS = ("time_integer", "timeInt", "time_int")


def to_epoch_ms(value: Any) -> int:
    """Normaliza un timestamp (epoch ms o ISO-8601) a epoch ms."""
    if isinstance(value, bool):
        raise ValueError("timestamp must be a number or ISO-8601 string")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, datetime):
        dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return int(dt.timestamp() * 1000)
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return int(dt.timestamp() * 1000)
    raise ValueError(f"unsupported timestamp: {value!r}")


def _utc(ts_ms: int) -> datetime:
    return datetime.fromtimestamp(ts_ms / 1000.0, tz=timezone.utc)


def date_integer_of(ts_ms: int) -> int:
    """YYYYMMDD en UTC."""
    return int(_utc(ts_ms).strftime("%Y%m%d"))


def time_integer_of(ts_ms: int) -> int:
    """HHMMSS en UTC."""
    return int(_utc(ts_ms).strftime("%H%M%S"))


class MetricSample(BaseModel):
    """Resultado crudo de un probe para (service, hostname, metric).

    Formato esperado (una línea JSON por muestra):
    {
        "service": "CREAM-CE",
        "hostname": "ce01.example.org",
        "metric": "emi.cream.CREAMCE-JobSubmit",
        "status": "OK",
        "timestamp": 1430438400000,
        "date_integer": 20150501,
        "time_integer": 0
    }

    ``timestamp`` también se acepta como ISO-8601; ``date_integer`` y
    ``time_integer`` se derivan del timestamp (UTC) si no vienen.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    service: str
    hostname: str
    metric: str
    status: str
    timestamp: int
    date_integer: int = Field(default=0, validation_alias=AliasChoices(*_DATE_KEYS))
    time_integer: int = Field(default=0, validation_alias=AliasChoices(*_TIME_KEYS))
    message: Optional[str] = None
    summary: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def derive_date_time(cls, data: Any) -> Any:
        """Deriva date_integer/time_integer del timestamp si no vienen."""
        if not isinstance(data, dict) or data.get("timestamp") is None:
            return data
        try:
            ts = to_epoch_ms(data["timestamp"])
        except (TypeError, ValueError):
            return data  # lo reporta validate_timestamp
        data = dict(data)
        if all(data.get(k) is None for k in _DATE_KEYS):
            data["date_integer"] = date_integer_of(ts)
        if all(data.get(k) is None for k in _TIME_KEYS):
            data["time_integer"] = time_integer_of(ts)
        return data

    @field_validator("service", "hostname", "metric", "status")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("timestamp", mode="before")
    @classmethod
    def validate_timestamp(cls, v):
        try:
            ts = to_epoch_ms(v)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid timestamp: {e}")
        if ts < 0:
            raise ValueError("timestamp must not be negative")
        return ts

    @property
    def key(self) -> tuple[str, str, str]:
        """(service, hostname, metric)."""
        return (self.service, self.hostname, self.metric)


@dataclass(frozen=True)
class StatusMetric:
    """Estado de una métrica en un instante, con referencia al estado previo.

    ``prev_status``/``prev_timestamp`` apuntan al registro inmediatamente
    anterior de la misma partición (group, service, hostname, metric).
    """

    group: str
    service: str
    hostname: str
    metric: str
    timestamp: int
    status: str
    date_integer: int
    time_integer: int
    prev_status: Optional[str] = None
    prev_timestamp: Optional[int] = None

    @property
    def endpoint_key(self) -> tuple[str, str, str]:
        return (self.group, self.service, self.hostname)


@dataclass(frozen=True)
class EndpointStatus:
    """Estado combinado de un endpoint en un timestamp."""

    group: str
    service: str
    hostname: str
    timestamp: int
    status: str
    date_integer: int
