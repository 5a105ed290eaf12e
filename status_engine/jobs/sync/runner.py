"""Loop de sincronización: pull → escritura → ack."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

import httpx

from .client import MessagingClient
from .config import SyncConfig
from .writer import SyncWriter

logger = logging.getLogger(__name__)


@dataclass
class SyncStats:
    """Estadísticas del loop de sync."""

    polls: int = 0
    received: int = 0
    stored: int = 0
    failed: int = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __str__(self) -> str:
        return f"SyncStats: polls={self.polls} received={self.received} stored={self.stored} failed={self.failed}"


def poll_once(client: MessagingClient, writer: SyncWriter, batch: int, stats: SyncStats) -> int:
    """Un ciclo pull/write/ack. Solo se confirman los mensajes escritos."""
    stats.polls += 1
    messages = client.pull(batch)
    stats.received += len(messages)

    acked: list[str] = []
    for msg in messages:
        try:
            writer.write(msg)
        except OSError as e:
            stats.failed += 1
            logger.error("[SYNC] write failed message_id=%s err=%s", msg.message_id, e)
            continue
        acked.append(msg.ack_id)

    client.acknowledge(acked)
    stats.stored += len(acked)
    return len(acked)


def run_sync(
    cfg: SyncConfig,
    client: Optional[MessagingClient] = None,
    writer: Optional[SyncWriter] = None,
    max_polls: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> SyncStats:
    """Loop continuo; ``max_polls`` lo limita (tests / ejecución única)."""
    cfg.validate()
    client = client or MessagingClient(cfg)
    writer = writer or SyncWriter(cfg.base_path)
    stats = SyncStats()
    interval = cfg.interval_ms / 1000.0

    logger.info(
        "[SYNC] started project=%s sub=%s batch=%d interval_ms=%d path=%s",
        cfg.project, cfg.subscription, cfg.batch, cfg.interval_ms, cfg.base_path,
    )
    try:
        while max_polls is None or stats.polls < max_polls:
            try:
                poll_once(client, writer, cfg.batch, stats)
            except httpx.HTTPError as e:
                # el servicio reentrega lo no confirmado
                logger.error("[SYNC] messaging error: %s", e)
            if stats.polls % 100 == 0:
                logger.info("[SYNC] %s", stats)
            sleep(interval)
    finally:
        client.close()
    logger.info("[SYNC] stopped %s", stats)
    return stats
