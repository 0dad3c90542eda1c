"""Entry point de desarrollo para el cliente casewhr (sin instalar el paquete).

Permite ejecutar la CLI desde la raíz del repo con:
- `python main.py doctor run`

El código vive en `src/`; sin `pip install -e .` Python no encuentra
`cli`, `core` ni `adapters`, así que se agrega `src/` al path aquí.
"""

from __future__ import annotations

import sys
from pathlib import Path


def main() -> None:
    src = Path(__file__).resolve().parent / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
