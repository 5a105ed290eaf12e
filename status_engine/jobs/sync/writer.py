"""Almacenamiento durable de mensajes de sync, sin modificar el payload."""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path

from .client import ReceivedMessage

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def _safe(part: str) -> str:
    return _UNSAFE.sub("_", part).strip("._") or "_"


class SyncWriter:
    """Escribe cada mensaje bajo ``base_path``.

    Layout:
    - con atributos report/type/partition_date:
      ``<base>/<report>/<type>/<partition_date>.<ext>``
    - sin ellos: ``<base>/unsorted/<message_id>.<ext>``

    ``ext`` viene del atributo ``format`` (por defecto ``avro``). Cada mensaje
    de sync es un snapshot completo, así que reemplaza al anterior del mismo
    día.
    """

    def __init__(self, base_path: str) -> None:
        self._base = Path(base_path)

    def target_for(self, message: ReceivedMessage) -> Path:
        attrs = message.attributes
        ext = _safe(attrs.get("format", "avro"))
        report, kind, date = attrs.get("report"), attrs.get("type"), attrs.get("partition_date")
        if report and kind and date:
            return self._base / _safe(report) / _safe(kind) / f"{_safe(date)}.{ext}"
        return self._base / "unsorted" / f"{_safe(message.message_id or message.ack_id)}.{ext}"

    def write(self, message: ReceivedMessage) -> Path:
        target = self.target_for(message)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=target.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(message.data)
            os.replace(tmp, target)
        except OSError:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
        logger.debug("[SYNC] stored message_id=%s path=%s bytes=%d", message.message_id, target, len(message.data))
        return target
