"""Construcción de headers de autenticación (dos regímenes).

- normal: `Authorization: Bearer <token de sesión>`.
- dev: el gate genérico del backend solo valida sesiones reales, así que
  `Authorization` lleva la anon key pública y la identidad dev viaja aparte en
  `X-Dev-Token` (la consume una edge function de confianza).
- sin credencial: solo la anon key (endpoints de lectura).

Nota: el modo dev es una comodidad de staging, no un límite de seguridad.
Solo existe si `AppSettings.dev_mode_enabled` está activo.
"""

from __future__ import annotations

import logging

from core.config import AppSettings
from core.domain.models import Credential

logger = logging.getLogger(__name__)

DEV_TOKEN_HEADER = "X-Dev-Token"


def credential_from_token(token: str, *, settings: AppSettings) -> Credential:
    """Envuelve un token emitido por el colaborador de auth."""

    credential = Credential.from_token(
        token,
        dev_prefix=settings.dev_token_prefix,
        dev_mode_enabled=settings.dev_mode_enabled,
    )
    if not credential.is_dev and token.startswith(settings.dev_token_prefix):
        logger.warning(
            "Dev-prefixed credential received while dev mode is disabled; sending it as a normal session token."
        )
    return credential


def build_auth_headers(credential: Credential | None, *, settings: AppSettings) -> dict[str, str]:
    headers: dict[str, str] = {"Content-Type": "application/json"}

    if credential is None:
        headers["Authorization"] = f"Bearer {settings.public_anon_key}"
        return headers

    if credential.is_dev:
        if not settings.dev_mode_enabled:
            # Una credencial dev construida a mano no reabre el canal.
            headers["Authorization"] = f"Bearer {credential.token}"
            return headers
        headers["Authorization"] = f"Bearer {settings.public_anon_key}"
        headers[DEV_TOKEN_HEADER] = credential.token
        return headers

    headers["Authorization"] = f"Bearer {credential.token}"
    return headers
