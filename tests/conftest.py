from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from ticktick_mcp.app.cache import TaskCacheStore
from ticktick_mcp.app.runtime import Runtime, build_runtime
from ticktick_mcp.app.settings import Settings
from ticktick_mcp.app.upstream import TickTickClient

API_BASE_URL = "https://api.ticktick.test/open/v1"
API_PREFIX = "/open/v1"


class FakeClock:
    """Controllable UTC clock for cache staleness checks."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now = self.now + timedelta(**delta)


class FakeTickTick:
    """In-process stand-in for the TickTick Open API, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.projects: list[dict[str, Any]] = [
            {"id": "p-work", "name": "Work"},
            {"id": "p-old", "name": "Old stuff", "closed": True},
        ]
        self.overrides: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}

    def body_of(self, index: int = -1) -> dict[str, Any]:
        return json.loads(self.requests[index].content or b"{}")

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix(API_PREFIX)
        override = self.overrides.get((request.method, path))
        if override is not None:
            return override(request)

        if "fail" in path:
            return httpx.Response(500, json={"errorMessage": "boom"})
        if request.method == "GET" and path == "/project":
            return httpx.Response(200, json=self.projects)
        if request.method == "POST" and path == "/project":
            return httpx.Response(200, json={"id": "p-new", **json.loads(request.content)})
        if request.method == "POST" and path == "/task":
            body = json.loads(request.content)
            return httpx.Response(200, json={"id": "t-new", **body})
        if request.method == "POST" and path.startswith("/task/"):
            return httpx.Response(200, json=json.loads(request.content))
        if path.startswith("/project/") and "/task/" in path:
            if request.method == "GET":
                _, _, project_id, _, task_id = path.split("/")
                return httpx.Response(
                    200, json={"id": task_id, "projectId": project_id, "title": "From upstream"}
                )
            return httpx.Response(200)
        if request.method == "GET" and path == "/habits":
            return httpx.Response(200, json=[{"id": "h1", "name": "Read"}])
        if request.method == "POST" and path == "/focus/start":
            return httpx.Response(200, json={"id": "f1", "status": "running"})
        if request.method == "GET" and path == "/tasks/today":
            return httpx.Response(200, json=[{"id": "t1", "title": "Standup"}])
        return httpx.Response(404, json={"errorMessage": "not found"})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 19, 9, 0, tzinfo=UTC))


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    return tmp_path / "ticktick-cache.json"


@pytest.fixture
def cache(cache_path: Path, clock: FakeClock) -> TaskCacheStore:
    return TaskCacheStore(cache_path, clock=clock)


@pytest.fixture
def settings(cache_path: Path) -> Settings:
    return Settings(
        access_token="test-token",
        api_base_url=API_BASE_URL,
        cache_path=cache_path,
    )


@pytest.fixture
def upstream() -> FakeTickTick:
    return FakeTickTick()


@pytest.fixture
def runtime(settings: Settings, cache: TaskCacheStore, upstream: FakeTickTick) -> Runtime:
    client = TickTickClient.from_settings(settings, transport=upstream.transport())
    return build_runtime(settings, client=client, cache=cache)


@pytest.fixture
def client(runtime: Runtime) -> Iterator[TestClient]:
    from ticktick_mcp.main import create_app

    app = create_app(runtime=runtime)
    with TestClient(app) as test_client:
        yield test_client
