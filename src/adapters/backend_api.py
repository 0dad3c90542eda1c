"""Fachada genérica de llamadas al backend.

Responsabilidad:
- Componer headers de auth, transporte con reintentos, decodificación y
  clasificación en una sola primitiva (`ApiClient.call`).
- Todas las APIs de dominio (proyectos, propuestas, admin) pasan por aquí.

Asimetría deliberada:
- Lecturas de listados (GET con `list_key`) degradan a una colección vacía.
- Escrituras fallan en voz alta con un `ClassifiedError`.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx
from pydantic import BaseModel

from adapters.auth_headers import build_auth_headers
from adapters.error_classifier import classify, log_classified
from adapters.http_client import Sleep, build_async_client, fetch_with_retry
from adapters.response_decoder import parse_json_response
from core.config import AppSettings
from core.domain.errors import ClassifiedError, ErrorKind
from core.domain.models import Credential, HttpMethod, RequestDescriptor

logger = logging.getLogger(__name__)


def serialize_body(body: Any) -> bytes | None:
    """Serializa el cuerpo una sola vez; los bytes resultantes se reenvían tal cual."""

    if body is None:
        return None
    if isinstance(body, bytes):
        return body
    if isinstance(body, BaseModel):
        return body.model_dump_json().encode("utf-8")
    return json.dumps(body, ensure_ascii=False).encode("utf-8")


class ApiClient:
    """Cliente del backend (async).

    Puede crear su propio `httpx.AsyncClient` o recibir uno ya construido
    (p.ej. con un `httpx.MockTransport` en tests); solo cierra el propio.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._settings = settings or AppSettings()
        self._client = client
        self._owns_client = client is None
        self._sleep = sleep

    @property
    def settings(self) -> AppSettings:
        return self._settings

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = build_async_client(self._settings)
        return self._client

    def descriptor(
        self,
        endpoint: str,
        *,
        method: HttpMethod | str = HttpMethod.GET,
        body: Any = None,
        credential: Credential | None = None,
        params: dict[str, str] | None = None,
        list_key: str | None = None,
    ) -> RequestDescriptor:
        return RequestDescriptor(
            endpoint=endpoint,
            method=HttpMethod(method),
            body=serialize_body(body),
            params=params or {},
            credential=credential,
            timeout_seconds=self._settings.http_timeout_seconds,
            max_retries=self._settings.http_max_retries,
            list_key=list_key,
        )

    async def call(self, descriptor: RequestDescriptor) -> Any:
        """Ejecuta el descriptor y devuelve el cuerpo JSON decodificado.

        Lanza `ClassifiedError` ante cualquier fallo, salvo en lecturas de
        listados, que devuelven `{list_key: [], "error": ...}`.
        """

        if not self._settings.is_configured:
            logger.error("Missing backend configuration (api_base_url/public_anon_key).")
            raise ClassifiedError(
                ErrorKind.UNKNOWN,
                "Backend configuration is missing. Please check your setup.",
                details="missing_configuration",
            )

        method = descriptor.method.value
        client = self._http()
        request = client.build_request(
            method,
            self._settings.endpoint_url(descriptor.endpoint),
            params=descriptor.params or None,
            headers=build_auth_headers(descriptor.credential, settings=self._settings),
            content=descriptor.body,
        )
        logger.debug(
            "API call: %s %s (credential=%s)",
            method,
            descriptor.endpoint,
            descriptor.credential or "anonymous",
        )

        try:
            response = await fetch_with_retry(
                client,
                request,
                max_retries=descriptor.max_retries,
                timeout_seconds=descriptor.timeout_seconds,
                backoff_seconds=self._settings.retry_backoff_seconds,
                sleep=self._sleep,
            )
            if not response.is_success:
                raise classify(response)
            data = parse_json_response(response)
        except Exception as exc:
            error = classify(exc)
            log_classified(error, endpoint=descriptor.endpoint, method=method)
            if descriptor.is_read and descriptor.list_key:
                logger.warning(
                    "Returning empty '%s' collection due to API error on %s",
                    descriptor.list_key,
                    descriptor.endpoint,
                )
                return {descriptor.list_key: [], "error": error.message}
            if error is exc:
                raise
            raise error from exc

        if descriptor.is_read and descriptor.list_key and isinstance(data, dict):
            if descriptor.list_key not in data:
                logger.warning(
                    "Response from %s is missing '%s'; returning an empty collection",
                    descriptor.endpoint,
                    descriptor.list_key,
                )
                return {descriptor.list_key: [], **data}
        return data

    async def api_call(
        self,
        endpoint: str,
        *,
        method: HttpMethod | str = HttpMethod.GET,
        body: Any = None,
        credential: Credential | None = None,
        params: dict[str, str] | None = None,
        list_key: str | None = None,
    ) -> Any:
        return await self.call(
            self.descriptor(
                endpoint,
                method=method,
                body=body,
                credential=credential,
                params=params,
                list_key=list_key,
            )
        )
