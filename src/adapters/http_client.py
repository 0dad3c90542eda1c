"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers, reintentos y logging de transporte.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.

Política de reintentos (`fetch_with_retry`):
- Solo se reintentan fallos de red, timeouts y HTTP 5xx.
- Un 4xx (incluido 401) nunca se reintenta: necesita otra credencial, no
  más tiempo. Eso lo decide el orquestador, no el transporte.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

import httpx

from core.config import AppSettings

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers para que todas las APIs de dominio se
      comporten igual.
    - `transport` permite apuntar el cliente a un backend simulado.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def is_retryable_status(status_code: int) -> bool:
    return 500 <= status_code < 600


def backoff_delay(attempt: int, backoff_seconds: float) -> float:
    """Espera incremental antes del siguiente intento (attempt es 1-based)."""

    return backoff_seconds * attempt


async def fetch_with_retry(
    client: httpx.AsyncClient,
    request: httpx.Request,
    *,
    max_retries: int = 2,
    timeout_seconds: float = 45.0,
    backoff_seconds: float = 1.5,
    sleep: Sleep = asyncio.sleep,
) -> httpx.Response:
    """Envía `request` con tope duro por intento y reintentos acotados.

    Devuelve la primera respuesta no-5xx. Si los 5xx persisten, devuelve la
    última respuesta para que el llamador la clasifique. Si persiste una
    excepción de red/timeout, la relanza.
    """

    attempts = max_retries + 1
    target = f"{request.method} {request.url.path}"

    for attempt in range(1, attempts + 1):
        try:
            response = await asyncio.wait_for(client.send(request), timeout=timeout_seconds)
        except (TimeoutError, httpx.TimeoutException) as exc:
            if attempt >= attempts:
                logger.error("Final timeout after %d attempts: %s", attempts, target)
                raise TimeoutError(f"Request timed out after {timeout_seconds:g}s: {target}") from exc
            logger.warning("Timeout on attempt %d/%d, retrying: %s", attempt, attempts, target)
        except httpx.TransportError as exc:
            if attempt >= attempts:
                logger.error("Final network error after %d attempts: %s (%s)", attempts, target, exc)
                raise
            logger.warning(
                "Network error on attempt %d/%d, retrying: %s (%s)", attempt, attempts, target, exc
            )
        else:
            if not is_retryable_status(response.status_code) or attempt >= attempts:
                if is_retryable_status(response.status_code):
                    logger.error(
                        "HTTP %d persisted after %d attempts: %s",
                        response.status_code,
                        attempts,
                        target,
                    )
                return response
            logger.warning(
                "HTTP %d on attempt %d/%d, retrying: %s",
                response.status_code,
                attempt,
                attempts,
                target,
            )
            await response.aclose()

        await sleep(backoff_delay(attempt, backoff_seconds))

    # Inalcanzable: el último intento siempre retorna o relanza.
    raise RuntimeError("fetch_with_retry exhausted without a result")
