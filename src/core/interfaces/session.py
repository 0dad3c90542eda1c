"""Contratos de los colaboradores de sesión.

Por qué Protocol:
- El refresh de credenciales y la navegación al login pertenecen al
  colaborador de auth/UI; el Core solo depende de su forma.
- Permite sustituirlos por stubs en los tests sin herencia rígida.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import Credential


@runtime_checkable
class SessionRefresher(Protocol):
    """Obtiene una credencial nueva cuando la sesión expiró."""

    async def refresh_session(self) -> Credential | None:
        """Devuelve la credencial renovada, o `None` si no se pudo renovar."""

        ...


@runtime_checkable
class LoginRedirector(Protocol):
    """Fuerza el flujo de login (se invoca tras la gracia visible)."""

    def redirect_to_login(self) -> None:
        ...
