"""CLI principal (Typer).

Por qué una CLI en un cliente de API:
- Diagnóstico del entorno (config, conectividad) sin abrir la UI.
- Configura el logging una sola vez (Rich) para todos los módulos.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from cli import doctor
from cli.ui_components import print_banner

app = typer.Typer(no_args_is_help=True, help="casewhr marketplace API client.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # httpx loguea cada request en INFO; lo dejamos en WARNING salvo en verbose.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Hide the banner."),
) -> None:
    configure_logging(verbose)
    if not quiet:
        print_banner(_console)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
