from __future__ import annotations

import asyncio
from pathlib import Path  # noqa: TC003

import httpx
import pytest

from pension_engine.adapters.http_resilience import ResilientClient, build_retry
from pension_engine.config.http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"path": request.url.path})


def test_build_retry_maps_policy() -> None:
    retry = build_retry(RetryPolicy(total=3, backoff_factor=0.25))

    assert retry.total == 3
    assert retry.backoff_factor == 0.25


def test_plain_client_without_cache() -> None:
    async def scenario() -> tuple[type[httpx.AsyncClient], dict[str, object]]:
        config = ResilienceConfig(name="test", base_url="https://upstream.test/v1")
        async with ResilientClient(config, transport=httpx.MockTransport(_ok)) as client:
            response = await client.get("things/1")
            return type(client._client), response.json()  # noqa: SLF001

    client_type, payload = asyncio.run(scenario())

    assert client_type is httpx.AsyncClient
    assert payload == {"path": "/v1/things/1"}


def _counting(calls: list[str]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return _ok(request)

    return httpx.MockTransport(handler)


@pytest.mark.parametrize("backend", ["memory", "sqlite"])
def test_cached_responses_skip_upstream(
    backend: str, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("PENSION_ENGINE_DATA_DIR", str(tmp_path))
    calls: list[str] = []

    async def scenario() -> list[dict[str, object]]:
        config = ResilienceConfig(
            name="test",
            base_url="https://upstream.test",
            cache=CacheConfig(backend=backend, default_ttl_seconds=600.0),  # type: ignore[arg-type]
        )
        async with ResilientClient(config, transport=_counting(calls)) as client:
            first = await client.get("/things/1")
            second = await client.get("/things/1")
            other = await client.get("/things/2")
        return [first.json(), second.json(), other.json()]

    payloads = asyncio.run(scenario())

    assert payloads == [{"path": "/things/1"}, {"path": "/things/1"}, {"path": "/things/2"}]
    assert calls == ["/things/1", "/things/2"]


def test_error_responses_are_not_cached() -> None:
    calls: list[str] = []

    def missing(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(404)

    async def scenario() -> None:
        config = ResilienceConfig(
            name="test",
            base_url="https://upstream.test",
            cache=CacheConfig(backend="memory", default_ttl_seconds=600.0),
        )
        async with ResilientClient(config, transport=httpx.MockTransport(missing)) as client:
            await client.get("/things/1")
            await client.get("/things/1")

    asyncio.run(scenario())

    assert len(calls) == 2


def test_without_cache_every_request_goes_upstream() -> None:
    calls: list[str] = []

    async def scenario() -> None:
        config = ResilienceConfig(name="test", base_url="https://upstream.test")
        async with ResilientClient(config, transport=_counting(calls)) as client:
            await client.get("/things/1")
            await client.get("/things/1")

    asyncio.run(scenario())

    assert len(calls) == 2


def test_rate_limit_spaces_out_requests() -> None:
    async def scenario() -> float:
        config = ResilienceConfig(
            name="test",
            base_url="https://upstream.test",
            ratelimit=RateLimit(max_calls=1, per_seconds=0.2),
        )
        loop = asyncio.get_running_loop()
        async with ResilientClient(config, transport=httpx.MockTransport(_ok)) as client:
            started = loop.time()
            for n in range(3):
                await client.get(f"/items/{n}")
            return loop.time() - started

    assert asyncio.run(scenario()) >= 0.3


def test_rate_limited_requests_still_complete() -> None:
    async def scenario() -> list[int]:
        config = ResilienceConfig(
            name="test",
            base_url="https://upstream.test",
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        )
        async with ResilientClient(config, transport=httpx.MockTransport(_ok)) as client:
            responses = [await client.get(f"/items/{n}") for n in range(3)]
        return [response.status_code for response in responses]

    assert asyncio.run(scenario()) == [200, 200, 200]


def test_sqlite_cache_defaults_to_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    data_dir = tmp_path / "data"
    monkeypatch.setenv("PENSION_ENGINE_DATA_DIR", str(data_dir))

    async def scenario() -> None:
        config = ResilienceConfig(
            name="test",
            cache=CacheConfig(backend="sqlite", default_ttl_seconds=60.0),
        )
        async with ResilientClient(config, transport=httpx.MockTransport(_ok)):
            pass

    asyncio.run(scenario())

    assert data_dir.is_dir()


def test_unsupported_cache_backend() -> None:
    cache = CacheConfig(backend="redis")  # type: ignore[arg-type]
    config = ResilienceConfig(name="test", cache=cache)

    with pytest.raises(ValueError, match="Unsupported cache backend"):
        ResilientClient(config)
