"""APIs de dominio del marketplace (proyectos, propuestas, admin...).

Cada función construye un `RequestDescriptor` nuevo y lo pasa por la fachada
`ApiClient`. Aquí no hay reintentos ni clasificación: eso es de la fachada y
del orquestador de sesión.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from adapters.backend_api import ApiClient
from core.domain.models import (
    Credential,
    HttpMethod,
    ProjectFilters,
    ProposalPayload,
    RequestDescriptor,
)


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _clean_filters(filters: dict[str, Any] | None) -> dict[str, str]:
    if not filters:
        return {}
    return {key: str(value) for key, value in filters.items() if value}


class ProjectApi:
    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def create(self, data: dict[str, Any], credential: Credential) -> Any:
        return await self._api.api_call("/projects", method=HttpMethod.POST, body=data, credential=credential)

    async def list(self, filters: ProjectFilters | None = None) -> dict[str, Any]:
        """Listado público; ante un error devuelve `{"projects": [], "error": ...}`."""

        params = filters.to_query_params() if filters else {}
        return await self._api.api_call("/projects", params=params, list_key="projects")

    async def get(self, project_id: str) -> Any:
        return await self._api.api_call(f"/projects/{_segment(project_id)}")

    async def update(self, project_id: str, data: dict[str, Any], credential: Credential) -> Any:
        return await self._api.api_call(
            f"/projects/{_segment(project_id)}",
            method=HttpMethod.PUT,
            body=data,
            credential=credential,
        )

    async def mark_completed(self, project_id: str, credential: Credential) -> Any:
        return await self.update(project_id, {"status": "completed"}, credential)

    async def delete(self, project_id: str, credential: Credential) -> Any:
        return await self._api.api_call(
            f"/projects/{_segment(project_id)}",
            method=HttpMethod.DELETE,
            credential=credential,
        )


class ProposalApi:
    def __init__(self, api: ApiClient) -> None:
        self._api = api

    def create_descriptor(self, payload: ProposalPayload, credential: Credential | None = None) -> RequestDescriptor:
        """Descriptor de `POST /proposals` con el payload serializado una vez."""

        return self._api.descriptor(
            "/proposals",
            method=HttpMethod.POST,
            body=payload.to_request_body(),
            credential=credential,
        )

    async def create(self, payload: ProposalPayload, credential: Credential) -> Any:
        return await self._api.call(self.create_descriptor(payload, credential))

    async def list_by_project(self, project_id: str, credential: Credential) -> Any:
        return await self._api.api_call(f"/proposals/project/{_segment(project_id)}", credential=credential)

    async def list_by_user(self, user_id: str, credential: Credential) -> Any:
        return await self._api.api_call(f"/proposals/user/{_segment(user_id)}", credential=credential)

    async def update_status(self, proposal_id: str, status: str, credential: Credential) -> Any:
        return await self._api.api_call(
            f"/proposals/{_segment(proposal_id)}",
            method=HttpMethod.PUT,
            body={"status": status},
            credential=credential,
        )

    async def update_milestone_plan_status(
        self,
        proposal_id: str,
        milestone_plan_status: str,
        credential: Credential,
    ) -> Any:
        return await self._api.api_call(
            f"/proposals/{_segment(proposal_id)}",
            method=HttpMethod.PUT,
            body={"milestone_plan_status": milestone_plan_status},
            credential=credential,
        )


class ReviewApi:
    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def create(self, data: dict[str, Any], credential: Credential) -> Any:
        return await self._api.api_call("/reviews", method=HttpMethod.POST, body=data, credential=credential)

    async def list_by_user(self, user_id: str) -> Any:
        return await self._api.api_call(f"/reviews/user/{_segment(user_id)}")


class PortfolioApi:
    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def get(self, user_id: str) -> Any:
        return await self._api.api_call(f"/portfolio/{_segment(user_id)}")

    async def update(self, user_id: str, portfolio_items: list[dict[str, Any]], credential: Credential) -> Any:
        return await self._api.api_call(
            f"/portfolio/{_segment(user_id)}",
            method=HttpMethod.PUT,
            body={"portfolio_items": portfolio_items},
            credential=credential,
        )


class AdminApi:
    """Consola de administración. Todas las llamadas requieren credencial."""

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def get_stats(self, credential: Credential) -> Any:
        return await self._api.api_call("/admin/stats", credential=credential)

    # Usuarios

    async def list_users(self, credential: Credential) -> Any:
        return await self._api.api_call("/admin/users", credential=credential)

    async def get_user(self, user_id: str, credential: Credential) -> Any:
        return await self._api.api_call(f"/admin/users/{_segment(user_id)}", credential=credential)

    async def update_user_status(self, user_id: str, status: str, credential: Credential) -> Any:
        return await self._api.api_call(
            f"/admin/users/{_segment(user_id)}/status",
            method=HttpMethod.PUT,
            body={"status": status},
            credential=credential,
        )

    async def ban_user(self, user_id: str, credential: Credential) -> Any:
        return await self._api.api_call(
            f"/admin/users/{_segment(user_id)}/ban",
            method=HttpMethod.POST,
            credential=credential,
        )

    async def delete_user(self, user_id: str, credential: Credential) -> Any:
        return await self._api.api_call(
            f"/admin/users/{_segment(user_id)}",
            method=HttpMethod.DELETE,
            credential=credential,
        )

    # Proyectos

    async def list_projects(self, credential: Credential, filters: dict[str, Any] | None = None) -> Any:
        return await self._api.api_call(
            "/admin/projects",
            params=_clean_filters(filters),
            credential=credential,
        )

    async def update_project_status(self, project_id: str, status: str, credential: Credential) -> Any:
        return await self._api.api_call(
            f"/admin/projects/{_segment(project_id)}/status",
            method=HttpMethod.PUT,
            body={"status": status},
            credential=credential,
        )

    async def delete_project(self, project_id: str, credential: Credential) -> Any:
        return await self._api.api_call(
            f"/admin/projects/{_segment(project_id)}",
            method=HttpMethod.DELETE,
            credential=credential,
        )

    # Retiros

    async def list_withdrawals(self, credential: Credential) -> Any:
        return await self._api.api_call("/admin/withdrawals", credential=credential)

    async def approve_withdrawal(self, withdrawal_id: str, credential: Credential) -> Any:
        return await self._api.api_call(
            f"/admin/withdrawals/{_segment(withdrawal_id)}/approve",
            method=HttpMethod.POST,
            credential=credential,
        )

    async def reject_withdrawal(self, withdrawal_id: str, reason: str, credential: Credential) -> Any:
        return await self._api.api_call(
            f"/admin/withdrawals/{_segment(withdrawal_id)}/reject",
            method=HttpMethod.POST,
            body={"reason": reason},
            credential=credential,
        )

    # Membresías

    async def update_membership(self, user_id: str, plan: str, credential: Credential) -> Any:
        return await self._api.api_call(
            f"/admin/memberships/{_segment(user_id)}",
            method=HttpMethod.PUT,
            body={"plan": plan},
            credential=credential,
        )

    async def cancel_membership(self, user_id: str, credential: Credential) -> Any:
        return await self._api.api_call(
            f"/admin/memberships/{_segment(user_id)}",
            method=HttpMethod.DELETE,
            credential=credential,
        )
