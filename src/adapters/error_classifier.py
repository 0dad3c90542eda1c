"""Clasificación de fallos del backend en una taxonomía estable.

Responsabilidad:
- Convertir una respuesta no-2xx o una excepción de transporte/decodificación
  en exactamente un `ClassifiedError`.
- Parsear el cuerpo de error con un modelo estricto: si la forma no se
  reconoce, el resultado es `UNKNOWN` en vez de adivinar campos.

La clasificación no hace I/O de red. El logging con la severidad adecuada
vive en `log_classified`.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel, ValidationError
from pydantic.config import ConfigDict

from adapters.response_decoder import extract_html_title, parse_json_response
from core.domain.errors import ClassifiedError, ErrorKind, ResponseDecodeError

logger = logging.getLogger(__name__)

# El backend señala el conflicto "ya enviaste una propuesta" solo con un status
# y un substring libre. Se mantiene por compatibilidad; es un contrato frágil.
# TODO: cambiar a un campo `code` cuando el backend exponga códigos de error.
BUSINESS_CONFLICT_MARKERS: tuple[str, ...] = (
    "already submitted a proposal",
    "already exists",
    "duplicate",
)

# Solo invalidez de sesión/JWT; un 401 por token ausente no se renueva.
AUTH_EXPIRED_MARKERS: tuple[str, ...] = (
    "jwt",
    "session",
    "invalid token",
    "token expired",
    "token has expired",
    "expired token",
)

ALREADY_SUBMITTED_MARKER = BUSINESS_CONFLICT_MARKERS[0]


class BackendErrorBody(BaseModel):
    """Formas de error conocidas: `{error, details, type}` o `{code, message}`."""

    model_config = ConfigDict(extra="ignore")

    error: str | None = None
    message: str | None = None
    details: str | None = None
    type: str | None = None
    code: str | int | None = None

    @property
    def text(self) -> str | None:
        return self.error or self.message


def is_business_conflict_message(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in BUSINESS_CONFLICT_MARKERS)


def is_auth_expired_message(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in AUTH_EXPIRED_MARKERS)


def _parse_error_body(response: httpx.Response) -> BackendErrorBody | None:
    """`None` significa forma desconocida."""

    if not response.text.strip():
        return BackendErrorBody()
    try:
        data = parse_json_response(response)
    except ResponseDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    try:
        body = BackendErrorBody.model_validate(data)
    except ValidationError:
        return None
    if body.text is None and data:
        return None
    return body


def _generic_message(response: httpx.Response) -> str:
    reason = response.reason_phrase or "Error"
    return f"HTTP {response.status_code}: {reason}"


def _compose_message(body: BackendErrorBody, fallback: str) -> str:
    message = body.text or fallback
    if body.details:
        message = f"{message} - {body.details}"
        if body.type:
            message = f"{message} ({body.type})"
    return message


def _classify_response(response: httpx.Response) -> ClassifiedError:
    status = response.status_code

    if 500 <= status < 600:
        message = _generic_message(response)
        details: str | None = None
        body = _parse_error_body(response)
        if body is not None and body.text:
            message = _compose_message(body, message)
            details = body.details
        elif body is None:
            title = extract_html_title(response.text)
            if title:
                message = f"{message} ({title})"
        return ClassifiedError(ErrorKind.HTTP_SERVER, message, http_status=status, details=details)

    if 400 <= status < 500:
        body = _parse_error_body(response)
        if body is None:
            return ClassifiedError(
                ErrorKind.UNKNOWN,
                _generic_message(response),
                http_status=status,
                details="unrecognized_error_body",
            )

        message = _compose_message(body, _generic_message(response))
        raw_text = body.text or ""
        if status == 401 and is_auth_expired_message(raw_text):
            kind = ErrorKind.AUTH_EXPIRED
        elif is_business_conflict_message(raw_text):
            kind = ErrorKind.BUSINESS_CONFLICT
        else:
            kind = ErrorKind.HTTP_CLIENT
        return ClassifiedError(kind, message, http_status=status, details=body.details)

    return ClassifiedError(
        ErrorKind.UNKNOWN,
        f"Unexpected HTTP status {status}",
        http_status=status,
    )


def _classify_exception(exc: BaseException) -> ClassifiedError:
    if isinstance(exc, ClassifiedError):
        return exc
    if isinstance(exc, (TimeoutError, httpx.TimeoutException)):
        return ClassifiedError(ErrorKind.TIMEOUT, str(exc) or "Request timed out")
    if isinstance(exc, httpx.TransportError):
        return ClassifiedError(ErrorKind.NETWORK, str(exc) or f"Network error ({type(exc).__name__})")
    if isinstance(exc, ResponseDecodeError):
        return ClassifiedError(
            ErrorKind.UNKNOWN,
            str(exc),
            http_status=exc.status_code,
            details="invalid_response_body",
        )
    return ClassifiedError(ErrorKind.UNKNOWN, str(exc) or type(exc).__name__)


def classify(failure: httpx.Response | BaseException) -> ClassifiedError:
    """Mapea una respuesta fallida o una excepción a un `ClassifiedError`."""

    if isinstance(failure, httpx.Response):
        return _classify_response(failure)
    return _classify_exception(failure)


def log_classified(error: ClassifiedError, *, endpoint: str, method: str = "GET") -> None:
    """Conflictos de negocio en INFO; todo lo demás en ERROR."""

    if error.kind is ErrorKind.BUSINESS_CONFLICT:
        logger.info(
            "Business validation on %s %s (HTTP %s): %s",
            method,
            endpoint,
            error.http_status,
            error.message,
        )
        return
    logger.error(
        "API call failed on %s %s [%s] (HTTP %s): %s",
        method,
        endpoint,
        error.kind.value,
        error.http_status,
        error.message,
    )
