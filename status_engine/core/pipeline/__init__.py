"""Pipeline de agregación: carry-forward → detalle → endpoint."""

from .carry_forward import select_carry_forward
from .detail import aggregate_detail
from .endpoint import aggregate_endpoint

__all__ = ["select_carry_forward", "aggregate_detail", "aggregate_endpoint"]
