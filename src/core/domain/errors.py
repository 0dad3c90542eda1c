"""Taxonomía de errores del cliente.

Por qué una taxonomía cerrada:
- Los llamadores (UI, orquestador) ramifican por `ErrorKind`, nunca por el
  texto libre que devuelve el backend.
- `ClassifiedError` solo lo produce el clasificador; es el único error que
  llega a la UI.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    HTTP_CLIENT = "http_client"
    HTTP_SERVER = "http_server"
    AUTH_EXPIRED = "auth_expired"
    BUSINESS_CONFLICT = "business_conflict"
    UNKNOWN = "unknown"

    @property
    def is_transient(self) -> bool:
        """Fallos que el transporte ya reintentó antes de llegar aquí."""

        return self in (ErrorKind.NETWORK, ErrorKind.TIMEOUT, ErrorKind.HTTP_SERVER)


class ClassifiedError(Exception):
    """Fallo clasificado de una llamada al backend."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        http_status: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.http_status = http_status
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "http_status": self.http_status,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"ClassifiedError(kind={self.kind.value!r}, http_status={self.http_status!r}, "
            f"message={self.message!r})"
        )


class ResponseDecodeError(ValueError):
    """El cuerpo de la respuesta no es JSON válido (o es una página HTML)."""

    def __init__(self, message: str, *, status_code: int, excerpt: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.excerpt = excerpt


class MilestoneBudgetExhausted(ValueError):
    """El presupuesto total ya está asignado; no se auto-agregan milestones."""

    def __init__(self, total_budget: float, allocated: float) -> None:
        super().__init__(
            f"Total budget has been allocated ({allocated:g} of {total_budget:g})."
        )
        self.total_budget = total_budget
        self.allocated = allocated


class InvalidProposalError(ValueError):
    """Validación local de la propuesta antes de tocar la red."""
