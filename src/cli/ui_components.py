"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Centraliza los mensajes visibles para el usuario según el tipo de error,
  así ninguna pantalla parsea texto libre del backend.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from adapters.error_classifier import ALREADY_SUBMITTED_MARKER
from core.domain.errors import ClassifiedError, ErrorKind
from core.domain.models import AllocationStatus, MilestonePlan
from core.services.session_retry import CallOutcome, Completed, Conflict, SessionExpired

ALREADY_SUBMITTED_MESSAGE = (
    "You have already submitted a proposal for this project. "
    "You can view your proposal in the Dashboard."
)
RETRY_EXHAUSTED_MESSAGE = (
    "The server is not responding right now and the request still failed after several retries. "
    "Please try again in a moment."
)


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida."""

    title = Text("casewhr client", style="bold cyan")
    subtitle = Text("Projects • Proposals • Milestones", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def user_message(error: ClassifiedError) -> str:
    """Mensaje visible para un error, elegido por `kind`."""

    if error.kind.is_transient:
        return RETRY_EXHAUSTED_MESSAGE
    if error.kind is ErrorKind.BUSINESS_CONFLICT:
        if ALREADY_SUBMITTED_MARKER in error.message.lower():
            return ALREADY_SUBMITTED_MESSAGE
        return error.message
    if error.kind is ErrorKind.AUTH_EXPIRED:
        return "Your session has expired. Please login again to continue."
    return error.message or "Request failed."


def countdown_message(outcome: SessionExpired) -> str:
    return f"{outcome.message} Redirecting to login in {outcome.redirect_in_seconds:g}s…"


def build_outcome_panel(outcome: CallOutcome) -> Panel:
    """Panel para el resultado del orquestador (éxito, conflicto, sesión)."""

    if isinstance(outcome, Completed):
        body = Text("Submitted successfully.", style="green")
        if outcome.attempts > 1:
            body.append("\n(session was refreshed and the request retried once)", style="dim")
        return Panel(body, title="Success", border_style="green")

    if isinstance(outcome, Conflict):
        return Panel(Text(user_message(outcome.error)), title="Info", border_style="blue")

    return Panel(Text(countdown_message(outcome), style="yellow"), title="Session expired", border_style="yellow")


def build_error_panel(error: ClassifiedError) -> Panel:
    body = Text(user_message(error), style="red")
    if error.http_status is not None:
        body.append(f"\nHTTP {error.http_status} [{error.kind.value}]", style="dim")
    return Panel(body, title="Error", border_style="red")


def build_plan_table(plan: MilestonePlan, *, currency: str = "") -> Table:
    """Tabla del plan con totales asignado/restante."""

    table = Table(title="Milestone Planning")
    table.add_column("#", style="cyan", no_wrap=True)
    table.add_column("Title", style="white")
    table.add_column("Amount", style="green", justify="right")
    table.add_column("Days", style="magenta", justify="right")
    for milestone in plan.milestones:
        table.add_row(
            str(milestone.order),
            milestone.title or "-",
            f"{currency} {milestone.amount:,.2f}".strip(),
            str(milestone.duration_days),
        )

    status = plan.allocation_status
    style = {
        AllocationStatus.BALANCED: "green",
        AllocationStatus.UNDER_ALLOCATED: "yellow",
        AllocationStatus.OVER_ALLOCATED: "red",
    }[status]
    table.caption = (
        f"Total {plan.total_budget:,.2f} • Allocated {plan.allocated:,.2f} • "
        f"Remaining {plan.remaining:,.2f}"
    )
    table.caption_style = style
    return table
