"""Flujo de envío de propuestas con presupuesto por milestones.

Este módulo une el asignador de milestones con el orquestador de sesión:
- el payload se construye y serializa UNA vez por envío;
- el orquestador reenvía esos mismos bytes si tiene que renovar la sesión,
  así el plan que se envía es exactamente el que vio el usuario.
"""

from __future__ import annotations

import logging

from adapters.marketplace_api import ProposalApi
from core.domain.errors import InvalidProposalError
from core.domain.models import (
    AllocationStatus,
    MilestonePlan,
    ProposalDraft,
    ProposalPayload,
)
from core.services.milestone_allocator import free_text_milestones, with_total_budget
from core.services.session_retry import CallOutcome, Completed, SessionRetryOrchestrator

logger = logging.getLogger(__name__)


def build_proposal_payload(draft: ProposalDraft, plan: MilestonePlan | None = None) -> ProposalPayload:
    """Construye el payload; con `plan` usa milestones estructurados.

    El plan se mide contra el presupuesto propuesto: un exceso transitorio se
    tolera mientras el usuario edita, pero no se envía.
    """

    if plan is None:
        return ProposalPayload(
            project_id=draft.project_id,
            cover_letter=draft.cover_letter,
            proposed_budget=draft.proposed_budget,
            currency=draft.currency,
            delivery_time=draft.delivery_time or None,
            use_structured_milestones=False,
            milestones=free_text_milestones(draft.free_text_milestones),
        )

    if not plan.milestones:
        raise InvalidProposalError("A milestone plan needs at least one milestone.")

    plan = with_total_budget(plan, draft.proposed_budget)
    if plan.allocation_status is AllocationStatus.OVER_ALLOCATED:
        raise InvalidProposalError(
            f"Allocated amount ({plan.allocated:g}) exceeds the proposed budget ({plan.total_budget:g})."
        )

    return ProposalPayload(
        project_id=draft.project_id,
        cover_letter=draft.cover_letter,
        proposed_budget=draft.proposed_budget,
        currency=draft.currency,
        delivery_time=draft.delivery_time or None,
        use_structured_milestones=True,
        milestones=list(plan.milestones),
    )


class ProposalSubmitter:
    """Envía una propuesta a través del orquestador de sesión."""

    def __init__(self, proposals: ProposalApi, orchestrator: SessionRetryOrchestrator) -> None:
        self._proposals = proposals
        self._orchestrator = orchestrator

    async def submit(self, draft: ProposalDraft, plan: MilestonePlan | None = None) -> CallOutcome:
        payload = build_proposal_payload(draft, plan)
        descriptor = self._proposals.create_descriptor(payload)
        logger.info(
            "Submitting proposal for project %s (%s %g, %d milestones, structured=%s)",
            payload.project_id,
            payload.currency.value,
            payload.proposed_budget,
            len(payload.milestones),
            payload.use_structured_milestones,
        )

        outcome = await self._orchestrator.run(descriptor)
        if isinstance(outcome, Completed):
            logger.info("Proposal for project %s submitted (attempts=%d)", payload.project_id, outcome.attempts)
        return outcome
