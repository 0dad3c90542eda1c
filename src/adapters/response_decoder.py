"""Decodificación segura de cuerpos de respuesta.

Reglas:
- Cuerpo vacío => `{}` (respuesta válida pero vacía, no es un error).
- Página HTML (p.ej. error de CDN/proxy) => `ResponseDecodeError` con el
  `<title>` de la página, para reportarla distinto de un fallo de red.
- JSON malformado => `ResponseDecodeError`.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from bs4 import BeautifulSoup

from core.domain.errors import ResponseDecodeError

logger = logging.getLogger(__name__)

_EXCERPT_CHARS = 200


def _looks_like_html(text: str) -> bool:
    head = text.lstrip()[:64].lower()
    return head.startswith("<!doctype html") or head.startswith("<html")


def extract_html_title(html: str) -> str | None:
    """Extrae el título de una página HTML de error (si lo tiene)."""

    if not html:
        return None
    soup = BeautifulSoup(html, "html.parser")
    if soup.title and soup.title.string:
        title = soup.title.string.strip()
        return title or None
    return None


def parse_json_response(response: httpx.Response) -> Any:
    text = response.text
    if not text.strip():
        return {}

    if _looks_like_html(text):
        title = extract_html_title(text)
        message = f"Server returned HTML error page (Status: {response.status_code})"
        if title:
            message = f"{message}: {title}"
        raise ResponseDecodeError(
            message,
            status_code=response.status_code,
            excerpt=text[:_EXCERPT_CHARS],
        )

    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse JSON body: %s", text[:_EXCERPT_CHARS])
        raise ResponseDecodeError(
            "Invalid JSON response from server",
            status_code=response.status_code,
            excerpt=text[:_EXCERPT_CHARS],
        ) from exc
