"""Asignación de presupuesto por milestones.

Funciones puras sobre `MilestonePlan`: cada operación devuelve un plan nuevo
y deja el original intacto.

Reglas:
- `add_milestone` se niega a auto-agregar cuando el presupuesto ya está
  asignado (guard de presupuesto cero) y pre-llena el monto restante.
- Un exceso transitorio (p.ej. al editar un monto) se permite y se expone vía
  `MilestonePlan.allocation_status` para que el usuario lo corrija.
- `order` siempre es 1..n sin huecos.
"""

from __future__ import annotations

from typing import Any

from core.domain.errors import MilestoneBudgetExhausted
from core.domain.models import CENT_TOLERANCE, Milestone, MilestonePlan

UPDATABLE_FIELDS: frozenset[str] = frozenset({"title", "description", "amount", "duration_days"})

DEFAULT_DURATION_DAYS = 7


def new_plan(total_budget: float) -> MilestonePlan:
    return MilestonePlan(total_budget=total_budget)


def _check_index(plan: MilestonePlan, index: int) -> None:
    if not 0 <= index < len(plan.milestones):
        raise IndexError(f"Milestone index {index} out of range (plan has {len(plan.milestones)}).")


def add_milestone(plan: MilestonePlan) -> MilestonePlan:
    remaining = plan.remaining
    # Mismo criterio que `allocation_status`: un plan BALANCED no acepta más.
    if remaining <= CENT_TOLERANCE and plan.total_budget > 0:
        raise MilestoneBudgetExhausted(plan.total_budget, plan.allocated)

    milestone = Milestone(
        amount=round(remaining, 2) if remaining > 0 else 0.0,
        duration_days=DEFAULT_DURATION_DAYS,
        order=len(plan.milestones) + 1,
    )
    return plan.model_copy(update={"milestones": (*plan.milestones, milestone)})


def remove_milestone(plan: MilestonePlan, index: int) -> MilestonePlan:
    _check_index(plan, index)
    kept = [m for i, m in enumerate(plan.milestones) if i != index]
    renumbered = tuple(m.model_copy(update={"order": position}) for position, m in enumerate(kept, start=1))
    return plan.model_copy(update={"milestones": renumbered})


def update_milestone(plan: MilestonePlan, index: int, field: str, value: Any) -> MilestonePlan:
    """Reemplaza un campo de un milestone; no toca a sus hermanos.

    Se valida con el modelo: un monto negativo lanza `ValidationError`.
    """

    if field not in UPDATABLE_FIELDS:
        raise ValueError(f"Milestone field '{field}' cannot be updated.")
    _check_index(plan, index)

    current = plan.milestones[index]
    updated = Milestone.model_validate({**current.model_dump(), field: value})
    milestones = list(plan.milestones)
    milestones[index] = updated
    return plan.model_copy(update={"milestones": tuple(milestones)})


def with_total_budget(plan: MilestonePlan, total_budget: float) -> MilestonePlan:
    """Cambia el presupuesto total (el usuario editó el monto propuesto)."""

    return MilestonePlan(total_budget=total_budget, milestones=plan.milestones)


def free_text_milestones(text: str) -> list[str]:
    """Milestones en texto libre: una línea no vacía por milestone."""

    return [line.strip() for line in text.splitlines() if line.strip()]
