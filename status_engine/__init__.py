"""status_engine - Cálculo batch de estados de métricas y endpoints.

Estructura:
- common/   → Settings (.env) y engine SQLAlchemy
- core/     → Dominio, perfiles y pipeline de agregación
- jobs/     → Job batch de estados y job de sincronización de topología
"""

__version__ = "0.1.0"
