"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Los modelos congelados (frozen) garantizan que credenciales, descriptores y
  payloads no se muten entre intentos.

Nota:
- Estos modelos describen *qué* viaja al backend, no *cómo* se envía.
"""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

# Tolerancia de medio centavo al comparar montos (plan y asignador).
CENT_TOLERANCE = 0.005


class CredentialRegime(str, Enum):
    """Régimen de autenticación de una credencial."""

    NORMAL = "normal"
    DEV = "dev"


class DevIdentity(BaseModel):
    """Identidad embebida en un token de desarrollo (`dev-user-{ts}||{email}`)."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str | None = None


class Credential(BaseModel):
    """Valor bearer opaco emitido por el colaborador de auth al hacer login.

    Por qué inmutable:
    - En un refresh se reemplaza la referencia completa; las llamadas en vuelo
      ven la credencial vieja o la nueva, nunca una mezcla.
    """

    model_config = ConfigDict(frozen=True)

    token: str = Field(..., min_length=1, repr=False)
    regime: CredentialRegime = Field(default=CredentialRegime.NORMAL)

    @classmethod
    def from_token(
        cls,
        token: str,
        *,
        dev_prefix: str = "dev-user-",
        dev_mode_enabled: bool = False,
    ) -> "Credential":
        """Deriva el régimen a partir de la forma del token.

        El prefijo de desarrollo solo cuenta si el modo dev está habilitado;
        en caso contrario el token viaja como una sesión normal.
        """

        is_dev = dev_mode_enabled and token.startswith(dev_prefix)
        regime = CredentialRegime.DEV if is_dev else CredentialRegime.NORMAL
        return cls(token=token, regime=regime)

    @property
    def is_dev(self) -> bool:
        return self.regime is CredentialRegime.DEV

    def masked(self) -> str:
        if len(self.token) <= 8:
            return "***"
        return f"{self.token[:4]}…{self.token[-4:]}"

    def dev_identity(self) -> DevIdentity | None:
        if not self.is_dev:
            return None
        user_id, _, email = self.token.partition("||")
        return DevIdentity(user_id=user_id, email=email or None)

    def __str__(self) -> str:
        return f"Credential({self.regime.value}, {self.masked()})"


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class RequestDescriptor(BaseModel):
    """Descripción inmutable de una llamada al backend.

    Reglas:
    - `body` ya está serializado (bytes): reenviar el descriptor reenvía
      exactamente los mismos bytes.
    - Se construye nuevo en cada función de API de dominio.
    """

    model_config = ConfigDict(frozen=True)

    endpoint: str = Field(..., min_length=1, pattern=r"^/")
    method: HttpMethod = Field(default=HttpMethod.GET)
    body: bytes | None = Field(default=None)
    params: dict[str, str] = Field(default_factory=dict)
    credential: Credential | None = Field(default=None)
    timeout_seconds: float = Field(default=45.0, gt=0)
    max_retries: int = Field(default=2, ge=0, le=10)
    list_key: str | None = Field(
        default=None,
        description="Clave de la colección en endpoints de listado (fallback de lectura).",
    )

    @property
    def is_read(self) -> bool:
        return self.method is HttpMethod.GET

    def with_credential(self, credential: Credential | None) -> "RequestDescriptor":
        return self.model_copy(update={"credential": credential})


class Milestone(BaseModel):
    """Un entregable con pago asociado dentro de un plan."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str = Field(default="", max_length=500)
    description: str = Field(default="", max_length=10_000)
    amount: float = Field(default=0.0, ge=0)
    duration_days: int = Field(default=7, ge=0)
    order: int = Field(default=1, ge=1)


class AllocationStatus(str, Enum):
    BALANCED = "balanced"
    UNDER_ALLOCATED = "under_allocated"
    OVER_ALLOCATED = "over_allocated"


class MilestonePlan(BaseModel):
    """Secuencia ordenada de milestones acotada por un presupuesto total.

    `allocated` y `remaining` se recalculan en cada lectura; no se cachean.
    """

    model_config = ConfigDict(frozen=True)

    total_budget: float = Field(default=0.0, ge=0)
    milestones: tuple[Milestone, ...] = Field(default_factory=tuple)

    @property
    def allocated(self) -> float:
        return sum(m.amount for m in self.milestones)

    @property
    def remaining(self) -> float:
        return self.total_budget - self.allocated

    @property
    def allocation_status(self) -> AllocationStatus:
        remaining = self.remaining
        if remaining < -CENT_TOLERANCE:
            return AllocationStatus.OVER_ALLOCATED
        if remaining > CENT_TOLERANCE:
            return AllocationStatus.UNDER_ALLOCATED
        return AllocationStatus.BALANCED

    def __len__(self) -> int:
        return len(self.milestones)


class Currency(str, Enum):
    TWD = "TWD"
    USD = "USD"
    CNY = "CNY"


class ProposalDraft(BaseModel):
    """Lo que el freelancer escribió en el formulario de propuesta."""

    project_id: str = Field(..., min_length=1)
    cover_letter: str = Field(..., min_length=1, max_length=20_000)
    proposed_budget: float = Field(..., gt=0)
    currency: Currency = Field(default=Currency.TWD)
    delivery_time: str | None = Field(default=None)
    free_text_milestones: str = Field(
        default="",
        description="Milestones en texto libre, uno por línea (modo no estructurado).",
    )


class ProposalPayload(BaseModel):
    """Cuerpo de `POST /proposals`. Se serializa una sola vez por envío."""

    model_config = ConfigDict(frozen=True)

    project_id: str
    cover_letter: str
    proposed_budget: float
    currency: Currency
    delivery_time: str | None = None
    use_structured_milestones: bool = False
    milestones: list[Milestone] | list[str] = Field(default_factory=list)

    def to_request_body(self) -> bytes:
        return self.model_dump_json().encode("utf-8")


class ProjectFilters(BaseModel):
    """Filtros opcionales del listado de proyectos (solo los definidos viajan)."""

    status: str | None = None
    category: str | None = None
    required_skills: str | None = None
    user_id: str | None = None
    sort_by: str | None = None
    budget_min: str | None = None
    budget_max: str | None = None
    search_query: str | None = None

    def to_query_params(self) -> dict[str, str]:
        return {key: value for key, value in self.model_dump().items() if value}
