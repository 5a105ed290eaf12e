from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url

from .config import get_settings


logger = logging.getLogger(__name__)


def get_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    settings = get_settings()
    url = url or settings.db_url
    echo = settings.db_echo if echo is None else echo

    # Log básico de parámetros de conexión (sin contraseña)
    safe_url = make_url(url).render_as_string(hide_password=True)
    logger.info("[DB] Crear engine url=%s", safe_url)

    engine = create_engine(url, pool_pre_ping=True, echo=echo)

    # Test de conexión: falla antes de agregar nada si el destino no responde
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("[DB] Test de conexión OK")

    return engine
