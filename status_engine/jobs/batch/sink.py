"""Sink adapter: persistencia de status_metrics y status_endpoints.

Los documentos se escriben sin clave; el destino asigna el identificador
(autoincrement en SQL). En SQL ambos destinos se escriben en una sola
transacción: o se confirma todo o nada.
"""

from __future__ import annotations

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, Sequence

import orjson
from sqlalchemy import BigInteger, Column, Integer, MetaData, String, Table, insert
from sqlalchemy.engine import Engine

from ...common.db import get_engine
from ...core.domain.documents import (
    STATUS_ENDPOINTS,
    STATUS_METRICS,
    endpoint_status_document,
    status_metric_document,
)
from ...core.domain.records import EndpointStatus, StatusMetric
from .retry import run_with_retry

logger = logging.getLogger(__name__)

JSONL_SCHEME = "jsonl://"

metadata = MetaData()

status_metrics_table = Table(
    STATUS_METRICS,
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("report", String(128), nullable=False),
    Column("endpoint_group", String(255), nullable=False),
    Column("service", String(255), nullable=False),
    Column("hostname", String(255), nullable=False),
    Column("metric", String(255), nullable=False),
    Column("status", String(64), nullable=False),
    Column("timestamp", BigInteger, nullable=False),
    Column("date_integer", Integer, nullable=False),
    Column("time_integer", Integer, nullable=False),
    Column("prev_status", String(64), nullable=True),
    Column("prev_ts", BigInteger, nullable=True),
)

status_endpoints_table = Table(
    STATUS_ENDPOINTS,
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("report", String(128), nullable=False),
    Column("endpoint_group", String(255), nullable=False),
    Column("service", String(255), nullable=False),
    Column("hostname", String(255), nullable=False),
    Column("status", String(64), nullable=False),
    Column("timestamp", BigInteger, nullable=False),
    Column("date_integer", Integer, nullable=False),
)


def _chunks(rows: Sequence[dict], size: int) -> Iterator[Sequence[dict]]:
    for i in range(0, len(rows), size):
        yield rows[i:i + size]


class StatusSink(ABC):
    """Destino de los registros finales de una ejecución."""

    @abstractmethod
    def write(
        self,
        metrics: Sequence[StatusMetric],
        endpoints: Sequence[EndpointStatus],
        report: str,
    ) -> tuple[int, int]:
        """Persiste ambos conjuntos. Retorna (status_metrics, status_endpoints)."""


class SqlStatusSink(StatusSink):
    def __init__(self, engine: Engine, batch_size: int = 1000, max_retries: int = 3) -> None:
        self._engine = engine
        self._batch_size = batch_size
        self._max_retries = max_retries

    def write(self, metrics, endpoints, report):
        metric_docs = [status_metric_document(r, report) for r in metrics]
        endpoint_docs = [endpoint_status_document(r, report) for r in endpoints]

        def _tx() -> tuple[int, int]:
            with self._engine.begin() as conn:
                metadata.create_all(conn)
                for chunk in _chunks(metric_docs, self._batch_size):
                    conn.execute(insert(status_metrics_table), list(chunk))
                for chunk in _chunks(endpoint_docs, self._batch_size):
                    conn.execute(insert(status_endpoints_table), list(chunk))
            return len(metric_docs), len(endpoint_docs)

        written = run_with_retry(_tx, max_retries=self._max_retries)
        logger.info(
            "sink_written target=sql %s=%d %s=%d",
            STATUS_METRICS, written[0], STATUS_ENDPOINTS, written[1],
        )
        return written


class JsonLinesSink(StatusSink):
    """Un archivo JSON lines por destino dentro de ``directory``.

    Se escriben a temporales y se renombran solo si ambos terminaron. Los
    temporales nunca quedan en el directorio, ni siquiera tras un fallo.
    """

    def __init__(self, directory: str) -> None:
        self._dir = Path(directory)

    def _dump(self, docs: Sequence[dict]) -> str:
        fd, tmp = tempfile.mkstemp(dir=self._dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                for doc in docs:
                    f.write(orjson.dumps(doc))
                    f.write(b"\n")
        except OSError:
            os.unlink(tmp)
            raise
        return tmp

    def write(self, metrics, endpoints, report):
        self._dir.mkdir(parents=True, exist_ok=True)
        metric_docs = [status_metric_document(r, report) for r in metrics]
        endpoint_docs = [endpoint_status_document(r, report) for r in endpoints]
        tmp_files: list[str] = []
        try:
            tmp_files.append(self._dump(metric_docs))
            tmp_files.append(self._dump(endpoint_docs))
            # Cada rename es atómico, el par no: si falla el segundo queda el
            # status_metrics nuevo junto al status_endpoints anterior.
            os.replace(tmp_files[0], self._dir / f"{STATUS_METRICS}.jsonl")
            try:
                os.replace(tmp_files[1], self._dir / f"{STATUS_ENDPOINTS}.jsonl")
            except OSError:
                logger.error(
                    "sink_partial target=%s %s replaced, %s not replaced",
                    self._dir, STATUS_METRICS, STATUS_ENDPOINTS,
                )
                raise
        finally:
            for tmp in tmp_files:
                if os.path.exists(tmp):
                    os.unlink(tmp)
        logger.info(
            "sink_written target=%s %s=%d %s=%d",
            self._dir, STATUS_METRICS, len(metric_docs), STATUS_ENDPOINTS, len(endpoint_docs),
        )
        return len(metric_docs), len(endpoint_docs)


def open_sink(destination: str) -> StatusSink:
    """``jsonl://<dir>`` → JsonLinesSink; cualquier otra cosa es una URL SQLAlchemy."""
    if destination.startswith(JSONL_SCHEME):
        return JsonLinesSink(destination[len(JSONL_SCHEME):])
    return SqlStatusSink(get_engine(destination))
