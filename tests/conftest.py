from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from adapters.backend_api import ApiClient
from core.config import AppSettings
from core.domain.models import Credential

BASE_URL = "https://backend.test/functions/v1/server"
ANON_KEY = "anon-public-key"


async def no_sleep(_: float) -> None:
    return None


def json_response(status: int, payload: Any) -> httpx.Response:
    return httpx.Response(status, content=json.dumps(payload).encode("utf-8"), headers={"Content-Type": "application/json"})


class RecordingBackend:
    """Backend simulado: responde en orden y registra cada request."""

    def __init__(self, *responses: httpx.Response | Exception | Callable[[httpx.Request], httpx.Response]) -> None:
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self._responses)) - 1
        item = self._responses[index]
        if isinstance(item, Exception):
            raise item
        if callable(item) and not isinstance(item, httpx.Response):
            return item(request)
        return httpx.Response(item.status_code, content=item.content, headers=item.headers)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        api_base_url=BASE_URL,
        public_anon_key=ANON_KEY,
        dev_mode_enabled=True,
    )


@pytest.fixture
def make_api(settings: AppSettings):
    def _make(backend: RecordingBackend, custom_settings: AppSettings | None = None) -> ApiClient:
        return ApiClient(custom_settings or settings, client=backend.client(), sleep=no_sleep)

    return _make


@pytest.fixture
def session_credential() -> Credential:
    return Credential(token="sess-xyz")
