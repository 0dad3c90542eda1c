"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import httpx
import typer
from rich.console import Console
from rich.table import Table

from adapters.backend_api import ApiClient
from cli.ui_components import build_error_panel, user_message
from core.config import AppSettings, write_user_env_vars
from core.domain.errors import ClassifiedError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def check_backend(
    settings: AppSettings,
    endpoint: str = "/health",
    *,
    client: httpx.AsyncClient | None = None,
) -> tuple[str, ClassifiedError | None]:
    """Calls the backend through the regular client stack (anonymous GET).

    Returns a short detail line and the classified error, if any.
    """

    try:
        async with ApiClient(settings, client=client) as api:
            data = await api.api_call(endpoint)
    except ClassifiedError as exc:
        return f"[{exc.kind.value}] {user_message(exc)}", exc
    status = data.get("status") if isinstance(data, dict) else None
    return (f"status={status}" if status else "OK"), None


@app.command()
def run(endpoint: str = typer.Option("/health", help="Backend endpoint used for the reachability check.")) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="casewhr Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row(
        "API base URL",
        "OK" if settings.api_base_url else "MISSING",
        settings.api_base_url or "Set CASEWHR_API_BASE_URL (or run `doctor setup-api`)",
    )
    table.add_row(
        "Anon key",
        "OK" if settings.public_anon_key else "MISSING",
        "set" if settings.public_anon_key else "Set CASEWHR_PUBLIC_ANON_KEY",
    )
    table.add_row(
        "Retries",
        "OK",
        f"max_retries={settings.http_max_retries} timeout={settings.http_timeout_seconds:g}s",
    )
    table.add_row(
        "Dev mode",
        "ENABLED" if settings.dev_mode_enabled else "OFF",
        "X-Dev-Token channel active; never enable in production"
        if settings.dev_mode_enabled
        else "Dev credentials are sent as normal tokens",
    )

    # Connectivity (best-effort)
    error: ClassifiedError | None = None
    if settings.is_configured:
        detail_http, error = asyncio.run(check_backend(settings, endpoint))
        table.add_row("Backend reachability", "FAIL" if error else "OK", detail_http)
    else:
        table.add_row("Backend reachability", "SKIPPED", "Configuration incomplete")

    _console.print(table)
    if error is not None:
        _console.print(build_error_panel(error))


@app.command(name="setup-api")
def setup_api() -> None:
    """Interactive backend setup (stores config in the user config .env)."""

    base_url = typer.prompt("API base URL", show_default=False).strip()
    anon_key = typer.prompt("Public anon key", hide_input=True, confirmation_prompt=False).strip()

    if not base_url or not anon_key:
        raise typer.BadParameter("base URL and anon key are required")

    env_path = write_user_env_vars(
        {
            "CASEWHR_API_BASE_URL": base_url.rstrip("/"),
            "CASEWHR_PUBLIC_ANON_KEY": anon_key,
        }
    )

    _console.print(f"[green]Saved API config to:[/green] {env_path}")
