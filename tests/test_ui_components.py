from __future__ import annotations

from rich.console import Console

from cli.ui_components import (
    ALREADY_SUBMITTED_MESSAGE,
    RETRY_EXHAUSTED_MESSAGE,
    build_outcome_panel,
    build_plan_table,
    user_message,
)
from core.domain.errors import ClassifiedError, ErrorKind
from core.services.milestone_allocator import add_milestone, new_plan, update_milestone
from core.services.session_retry import Completed, Conflict, SessionExpired


def _render(renderable) -> str:
    console = Console(record=True, width=120)
    console.print(renderable)
    return console.export_text()


def test_transient_errors_get_generic_message() -> None:
    for kind in (ErrorKind.NETWORK, ErrorKind.TIMEOUT, ErrorKind.HTTP_SERVER):
        assert user_message(ClassifiedError(kind, "raw")) == RETRY_EXHAUSTED_MESSAGE


def test_already_submitted_conflict_gets_friendly_message() -> None:
    error = ClassifiedError(ErrorKind.BUSINESS_CONFLICT, "You have already submitted a proposal", http_status=409)

    assert user_message(error) == ALREADY_SUBMITTED_MESSAGE


def test_other_errors_show_server_message() -> None:
    assert user_message(ClassifiedError(ErrorKind.HTTP_CLIENT, "Project not found")) == "Project not found"


def test_outcome_panels() -> None:
    conflict = Conflict(
        error=ClassifiedError(ErrorKind.BUSINESS_CONFLICT, "already submitted a proposal"),
        attempts=1,
    )

    assert "Submitted successfully" in _render(build_outcome_panel(Completed(body={}, attempts=1)))
    assert "Dashboard" in _render(build_outcome_panel(conflict))
    assert "Redirecting to login in 2s" in _render(
        build_outcome_panel(SessionExpired(message="Your session has expired.", redirect_in_seconds=2.0))
    )


def test_plan_table_shows_totals() -> None:
    plan = add_milestone(update_milestone(add_milestone(new_plan(1000)), 0, "amount", 600))

    text = _render(build_plan_table(plan, currency="USD"))

    assert "USD 600.00" in text
    assert "USD 400.00" in text
    assert "Remaining" in text
