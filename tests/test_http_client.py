from __future__ import annotations

import asyncio

import httpx
import pytest

from adapters.http_client import backoff_delay, build_async_client, fetch_with_retry
from conftest import RecordingBackend, json_response


def _request(client: httpx.AsyncClient) -> httpx.Request:
    return client.build_request("GET", "https://backend.test/projects")


@pytest.mark.asyncio
async def test_persistent_500_is_attempted_max_retries_plus_one_times() -> None:
    backend = RecordingBackend(json_response(500, {"error": "boom"}))
    delays: list[float] = []

    async def record_sleep(seconds: float) -> None:
        delays.append(seconds)

    async with backend.client() as client:
        response = await fetch_with_retry(
            client, _request(client), max_retries=2, backoff_seconds=1.5, sleep=record_sleep
        )

    assert response.status_code == 500
    assert backend.calls == 3
    assert delays == [1.5, 3.0]


@pytest.mark.asyncio
async def test_5xx_then_success_returns_success() -> None:
    backend = RecordingBackend(json_response(503, {}), json_response(200, {"ok": True}))

    async with backend.client() as client:
        response = await fetch_with_retry(client, _request(client), sleep=_noop)

    assert response.status_code == 200
    assert backend.calls == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 401, 404, 409])
async def test_4xx_is_never_retried(status: int) -> None:
    backend = RecordingBackend(json_response(status, {"error": "nope"}))

    async with backend.client() as client:
        response = await fetch_with_retry(client, _request(client), max_retries=2, sleep=_noop)

    assert response.status_code == status
    assert backend.calls == 1


@pytest.mark.asyncio
async def test_network_error_is_retried_then_reraised() -> None:
    backend = RecordingBackend(httpx.ConnectError("connection refused"))

    async with backend.client() as client:
        with pytest.raises(httpx.ConnectError):
            await fetch_with_retry(client, _request(client), max_retries=1, sleep=_noop)

    assert backend.calls == 2


@pytest.mark.asyncio
async def test_timeout_is_retried_and_final_timeout_raised() -> None:
    backend = RecordingBackend(httpx.ReadTimeout("slow"))

    async with backend.client() as client:
        with pytest.raises(TimeoutError):
            await fetch_with_retry(client, _request(client), max_retries=2, sleep=_noop)

    assert backend.calls == 3


@pytest.mark.asyncio
async def test_timeout_then_success() -> None:
    backend = RecordingBackend(httpx.ReadTimeout("slow"), json_response(200, {"ok": True}))

    async with backend.client() as client:
        response = await fetch_with_retry(client, _request(client), sleep=_noop)

    assert response.status_code == 200
    assert backend.calls == 2


@pytest.mark.asyncio
async def test_hanging_backend_is_cut_by_per_attempt_timeout() -> None:
    attempts = 0

    async def never_answers(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        await asyncio.Event().wait()
        return httpx.Response(200)

    async with httpx.AsyncClient(transport=httpx.MockTransport(never_answers)) as client:
        with pytest.raises(TimeoutError):
            await fetch_with_retry(client, _request(client), max_retries=2, timeout_seconds=0.05, sleep=_noop)

    assert attempts == 3


def test_backoff_is_incremental() -> None:
    assert [backoff_delay(n, 1.5) for n in (1, 2, 3)] == [1.5, 3.0, 4.5]


def test_build_async_client_sets_default_headers(settings) -> None:
    client = build_async_client(settings, extra_headers={"X-Trace": "1"})
    assert client.headers["User-Agent"] == settings.user_agent
    assert client.headers["Accept"] == "application/json"
    assert client.headers["X-Trace"] == "1"


async def _noop(_: float) -> None:
    return None
