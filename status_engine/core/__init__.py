"""Core module - Motor de agregación de estados.

Estructura:
- domain/      → Registros, topología, documentos y errores
- profiles/    → Operations / Availability profiles
- pipeline/    → Carry-forward, detalle y rollup por endpoint
- monitoring/  → Resumen de ejecución y métricas
- topology_index.py → Índice de topología compartido por los workers
"""
