from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    # .env en el directorio de trabajo del job
    return str(Path.cwd() / ".env")


@dataclass(frozen=True)
class Settings:
    db_url: str
    db_echo: bool

    report: str
    workers: int
    metrics_textfile: str


def _as_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("STATUS_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    db_url = os.getenv("STATUS_DB_URL", "sqlite:///status.db")
    db_echo = _as_bool(os.getenv("STATUS_DB_ECHO", "false"))

    report = os.getenv("STATUS_REPORT", "")
    workers = max(1, int(os.getenv("STATUS_WORKERS", "1")))

    # Vacío = no se exporta el textfile de Prometheus
    metrics_textfile = os.getenv("STATUS_METRICS_TEXTFILE", "")

    return Settings(
        db_url=db_url,
        db_echo=db_echo,
        report=report,
        workers=workers,
        metrics_textfile=metrics_textfile,
    )
