"""Sync job configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from ...core.domain.errors import ConfigurationError


@dataclass(frozen=True)
class SyncConfig:
    """Configuración del job de sincronización de topología."""
    endpoint: str
    port: int
    token: str
    project: str
    subscription: str
    base_path: str
    batch: int = 1
    interval_ms: int = 100
    verify_tls: bool = True
    timeout_seconds: float = 30.0

    @property
    def base_url(self) -> str:
        endpoint = self.endpoint.rstrip("/")
        if "://" not in endpoint:
            endpoint = "https://" + endpoint
        return f"{endpoint}:{self.port}"

    def validate(self) -> "SyncConfig":
        missing = [
            name for name in ("endpoint", "token", "project", "subscription", "base_path")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError("missing required parameters: " + ", ".join(missing))
        if self.batch < 1:
            raise ConfigurationError(f"batch must be >= 1, got {self.batch}")
        if self.interval_ms < 0:
            raise ConfigurationError(f"interval must be >= 0, got {self.interval_ms}")
        return self

    @classmethod
    def from_env(cls) -> "SyncConfig":
        return cls(
            endpoint=os.getenv("SYNC_AMS_ENDPOINT", ""),
            port=int(os.getenv("SYNC_AMS_PORT", "443")),
            token=os.getenv("SYNC_AMS_TOKEN", ""),
            project=os.getenv("SYNC_AMS_PROJECT", ""),
            subscription=os.getenv("SYNC_AMS_SUB", ""),
            base_path=os.getenv("SYNC_BASE_PATH", ""),
            batch=int(os.getenv("SYNC_AMS_BATCH", "1")),
            interval_ms=int(os.getenv("SYNC_AMS_INTERVAL_MS", "100")),
        )
