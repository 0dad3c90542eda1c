from __future__ import annotations

import json

import pytest

from adapters.marketplace_api import AdminApi, PortfolioApi, ProjectApi, ProposalApi, ReviewApi
from conftest import RecordingBackend, json_response
from core.domain.models import ProjectFilters


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend(json_response(200, {"ok": True}))


@pytest.mark.asyncio
async def test_project_list_sends_only_defined_filters(make_api, backend) -> None:
    projects = ProjectApi(make_api(backend))

    await projects.list(ProjectFilters(status="open", category="design", budget_min=None))

    request = backend.requests[0]
    assert request.url.path.endswith("/projects")
    assert dict(request.url.params) == {"status": "open", "category": "design"}


@pytest.mark.asyncio
async def test_project_list_falls_back_to_empty_collection(make_api) -> None:
    projects = ProjectApi(make_api(RecordingBackend(json_response(404, {"error": "Not found"}))))

    result = await projects.list()

    assert result == {"projects": [], "error": "Not found"}


@pytest.mark.asyncio
async def test_project_mark_completed_puts_status(make_api, backend, session_credential) -> None:
    await ProjectApi(make_api(backend)).mark_completed("p 1", session_credential)

    request = backend.requests[0]
    assert request.method == "PUT"
    assert request.url.raw_path.endswith(b"/projects/p%201")
    assert json.loads(request.content) == {"status": "completed"}


@pytest.mark.asyncio
async def test_proposal_routes(make_api, backend, session_credential) -> None:
    proposals = ProposalApi(make_api(backend))

    await proposals.list_by_project("p1", session_credential)
    await proposals.list_by_user("u1", session_credential)
    await proposals.update_milestone_plan_status("pr1", "approved", session_credential)

    paths = [r.url.path.rsplit("/proposals", 1)[1] for r in backend.requests]
    assert paths == ["/project/p1", "/user/u1", "/pr1"]
    assert json.loads(backend.requests[2].content) == {"milestone_plan_status": "approved"}


@pytest.mark.asyncio
async def test_review_and_portfolio_reads_are_anonymous(make_api, backend, settings) -> None:
    api = make_api(backend)

    await ReviewApi(api).list_by_user("u1")
    await PortfolioApi(api).get("u1")

    for request in backend.requests:
        assert request.headers["Authorization"] == f"Bearer {settings.public_anon_key}"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("call", "method", "suffix", "body"),
    [
        (lambda a, c: a.update_user_status("u1", "suspended", c), "PUT", "/admin/users/u1/status", {"status": "suspended"}),
        (lambda a, c: a.ban_user("u1", c), "POST", "/admin/users/u1/ban", None),
        (lambda a, c: a.reject_withdrawal("w1", "fraud", c), "POST", "/admin/withdrawals/w1/reject", {"reason": "fraud"}),
        (lambda a, c: a.approve_withdrawal("w1", c), "POST", "/admin/withdrawals/w1/approve", None),
        (lambda a, c: a.update_membership("u1", "pro", c), "PUT", "/admin/memberships/u1", {"plan": "pro"}),
        (lambda a, c: a.cancel_membership("u1", c), "DELETE", "/admin/memberships/u1", None),
        (lambda a, c: a.delete_project("p1", c), "DELETE", "/admin/projects/p1", None),
    ],
)
async def test_admin_routes(make_api, backend, session_credential, call, method, suffix, body) -> None:
    await call(AdminApi(make_api(backend)), session_credential)

    request = backend.requests[0]
    assert request.method == method
    assert request.url.path.endswith(suffix)
    assert request.headers["Authorization"] == "Bearer sess-xyz"
    if body is None:
        assert request.content == b""
    else:
        assert json.loads(request.content) == body


@pytest.mark.asyncio
async def test_admin_list_projects_drops_empty_filters(make_api, backend, session_credential) -> None:
    await AdminApi(make_api(backend)).list_projects(session_credential, {"status": "open", "search": ""})

    assert dict(backend.requests[0].url.params) == {"status": "open"}
