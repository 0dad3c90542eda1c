"""Script de ejecución de la CLI casewhr (`python -m main` desde `src/`)."""

from __future__ import annotations

import sys

# Rich imprime caracteres no-ASCII (banner, paneles); en consolas cp1252 falla.
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")
    sys.stderr.reconfigure(encoding="utf-8")

from cli.main import run

if __name__ == "__main__":
    run()
