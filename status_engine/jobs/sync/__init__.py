"""Sync job package: pulls topology/profile sync messages to durable storage.

Modules:
- config: SyncConfig dataclass
- client: Messaging pull/ack client (httpx)
- writer: Atomic file writer
- runner: Pull loop (run_sync)
- cli: CLI entry point (main)
"""

from .config import SyncConfig
from .runner import run_sync

__all__ = ["SyncConfig", "run_sync"]
