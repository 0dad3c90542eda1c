"""Orquestador de refresh de sesión y reintento único.

Máquina de estados por ejecución (no compartida entre envíos concurrentes):

    IDLE -> ATTEMPT_1 -> SUCCEEDED
                      -> BUSINESS_CONFLICT
                      -> OTHER_FAILURE
                      -> REFRESHING -> ATTEMPT_2 -> SUCCEEDED
                                                 -> BUSINESS_CONFLICT
                                                 -> PERMANENT_FAILURE
                                    -> SESSION_EXPIRED
    IDLE -> SESSION_EXPIRED   (no hay credencial: login requerido)

Invariantes:
- Como máximo dos llamadas a la fachada por ejecución.
- El segundo intento reenvía el mismo descriptor (mismos bytes de cuerpo);
  solo cambia la credencial.
- Los fallos transitorios ya se reintentaron en el transporte; aquí no se
  reintentan de nuevo.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from core.domain.errors import ClassifiedError, ErrorKind
from core.domain.models import Credential, RequestDescriptor
from core.interfaces.session import LoginRedirector, SessionRefresher

logger = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please login again to continue."
LOGIN_REQUIRED_MESSAGE = "Please login first."


class CallExecutor(Protocol):
    async def call(self, descriptor: RequestDescriptor) -> Any:
        ...


class CredentialStore:
    """Credencial de la sesión en memoria.

    Es el único recurso compartido entre llamadas: se reemplaza entera (nueva
    referencia), nunca se muta.
    """

    def __init__(self, credential: Credential | None = None) -> None:
        self._credential = credential

    @property
    def current(self) -> Credential | None:
        return self._credential

    def replace(self, credential: Credential) -> None:
        self._credential = credential

    def clear(self) -> None:
        self._credential = None


class RunState(str, Enum):
    IDLE = "idle"
    ATTEMPT_1 = "attempt_1"
    REFRESHING = "refreshing"
    ATTEMPT_2 = "attempt_2"
    SUCCEEDED = "succeeded"
    BUSINESS_CONFLICT = "business_conflict"
    OTHER_FAILURE = "other_failure"
    PERMANENT_FAILURE = "permanent_failure"
    SESSION_EXPIRED = "session_expired"


_TRANSITIONS: dict[RunState, frozenset[RunState]] = {
    RunState.IDLE: frozenset({RunState.ATTEMPT_1, RunState.SESSION_EXPIRED}),
    RunState.ATTEMPT_1: frozenset(
        {
            RunState.SUCCEEDED,
            RunState.BUSINESS_CONFLICT,
            RunState.OTHER_FAILURE,
            RunState.REFRESHING,
        }
    ),
    RunState.REFRESHING: frozenset({RunState.ATTEMPT_2, RunState.SESSION_EXPIRED}),
    RunState.ATTEMPT_2: frozenset(
        {
            RunState.SUCCEEDED,
            RunState.BUSINESS_CONFLICT,
            RunState.PERMANENT_FAILURE,
        }
    ),
}


class InvalidTransition(RuntimeError):
    pass


@dataclass
class _Run:
    endpoint: str
    state: RunState = RunState.IDLE
    trace: list[RunState] = field(default_factory=lambda: [RunState.IDLE])

    def advance(self, target: RunState) -> None:
        if target not in _TRANSITIONS.get(self.state, frozenset()):
            raise InvalidTransition(f"{self.state.value} -> {target.value}")
        logger.debug("[%s] %s -> %s", self.endpoint, self.state.value, target.value)
        self.state = target
        self.trace.append(target)

    @property
    def attempts(self) -> int:
        return sum(1 for s in self.trace if s in (RunState.ATTEMPT_1, RunState.ATTEMPT_2))


@dataclass(frozen=True)
class Completed:
    """La llamada tuvo éxito (en el primer o segundo intento)."""

    body: Any
    attempts: int
    trace: tuple[RunState, ...] = ()


@dataclass(frozen=True)
class Conflict:
    """Conflicto de negocio esperado: resultado informativo, no un error."""

    error: ClassifiedError
    attempts: int
    trace: tuple[RunState, ...] = ()

    @property
    def message(self) -> str:
        return self.error.message


@dataclass(frozen=True)
class SessionExpired:
    """No se pudo renovar la sesión: se fuerza el re-login tras una gracia."""

    message: str
    redirect_in_seconds: float
    redirect_handle: asyncio.TimerHandle | None = None
    trace: tuple[RunState, ...] = ()


CallOutcome = Completed | Conflict | SessionExpired


class SessionRetryOrchestrator:
    """Envuelve la fachada para llamadas autenticadas y mutantes."""

    def __init__(
        self,
        api: CallExecutor,
        credentials: CredentialStore,
        refresher: SessionRefresher,
        *,
        redirector: LoginRedirector | None = None,
        redirect_delay_seconds: float = 2.0,
    ) -> None:
        self._api = api
        self._credentials = credentials
        self._refresher = refresher
        self._redirector = redirector
        self._redirect_delay_seconds = redirect_delay_seconds

    async def run(self, descriptor: RequestDescriptor) -> CallOutcome:
        """Ejecuta el descriptor con refresh-and-retry.

        Lanza el `ClassifiedError` original ante fallos que no son de sesión,
        y el del segundo intento si este también falla.
        """

        run = _Run(endpoint=descriptor.endpoint)

        credential = self._credentials.current
        if credential is None:
            run.advance(RunState.SESSION_EXPIRED)
            return self._expire(run, LOGIN_REQUIRED_MESSAGE)

        run.advance(RunState.ATTEMPT_1)
        try:
            body = await self._api.call(descriptor.with_credential(credential))
        except ClassifiedError as error:
            if error.kind is ErrorKind.BUSINESS_CONFLICT:
                run.advance(RunState.BUSINESS_CONFLICT)
                return Conflict(error=error, attempts=run.attempts, trace=tuple(run.trace))
            if error.kind is not ErrorKind.AUTH_EXPIRED:
                run.advance(RunState.OTHER_FAILURE)
                raise
            logger.info("Session expired on %s; refreshing credentials", descriptor.endpoint)
            return await self._refresh_and_retry(run, descriptor)

        run.advance(RunState.SUCCEEDED)
        return Completed(body=body, attempts=run.attempts, trace=tuple(run.trace))

    async def _refresh_and_retry(self, run: _Run, descriptor: RequestDescriptor) -> CallOutcome:
        run.advance(RunState.REFRESHING)
        refreshed = await self._refresh()
        if refreshed is None:
            run.advance(RunState.SESSION_EXPIRED)
            return self._expire(run, SESSION_EXPIRED_MESSAGE)

        self._credentials.replace(refreshed)
        run.advance(RunState.ATTEMPT_2)
        try:
            body = await self._api.call(descriptor.with_credential(refreshed))
        except ClassifiedError as error:
            if error.kind is ErrorKind.BUSINESS_CONFLICT:
                run.advance(RunState.BUSINESS_CONFLICT)
                return Conflict(error=error, attempts=run.attempts, trace=tuple(run.trace))
            run.advance(RunState.PERMANENT_FAILURE)
            logger.error("Retry after session refresh failed on %s: %s", descriptor.endpoint, error.message)
            raise

        logger.info("Call to %s succeeded after session refresh", descriptor.endpoint)
        run.advance(RunState.SUCCEEDED)
        return Completed(body=body, attempts=run.attempts, trace=tuple(run.trace))

    async def _refresh(self) -> Credential | None:
        try:
            refreshed = await self._refresher.refresh_session()
        except Exception:
            logger.exception("Session refresh raised; treating the session as expired")
            return None
        if refreshed is None:
            logger.error("Session refresh returned no credential")
        return refreshed

    def _expire(self, run: _Run, message: str) -> SessionExpired:
        self._credentials.clear()
        handle: asyncio.TimerHandle | None = None
        if self._redirector is not None:
            loop = asyncio.get_running_loop()
            handle = loop.call_later(self._redirect_delay_seconds, self._redirector.redirect_to_login)
        return SessionExpired(
            message=message,
            redirect_in_seconds=self._redirect_delay_seconds,
            redirect_handle=handle,
            trace=tuple(run.trace),
        )
