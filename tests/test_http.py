from __future__ import annotations

from fastapi.testclient import TestClient


def test_health_endpoints(client: TestClient) -> None:
    for route in ("/health", "/healthz"):
        response = client.get(route)
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "ticktick-mcp"
        assert body["version"] == "1.0.0"
        assert body["timestamp"]


def test_root_reports_tool_count(client: TestClient) -> None:
    body = client.get("/").json()
    assert body["status"] == "running"
    assert body["tools_count"] == 27


def test_tools_catalog(client: TestClient) -> None:
    tools = client.get("/tools").json()["tools"]
    assert len(tools) == 27
    assert tools[0]["name"] == "ticktick_get_projects"
    assert tools[0]["route"] == "/api/ticktick/projects"
    assert tools[0]["input_schema"]["type"] == "object"


def test_api_docs_lists_routes_and_auth(client: TestClient) -> None:
    body = client.get("/api/docs").json()
    assert body["endpoints"]["ticktick_create_task"] == "POST /api/ticktick/tasks/create"
    assert body["endpoints"]["execute_any_tool"] == "POST /api/ticktick/execute/{tool_name}"
    assert body["authentication"] == {"method": "Bearer Token", "configured": True}


def test_lifespan_initializes_cache_file(client: TestClient, cache_path) -> None:
    assert cache_path.exists()


def test_shortcut_and_execute_routes_agree(client: TestClient) -> None:
    registered = client.post(
        "/api/ticktick/cache/register",
        json={"task_id": "t1", "project_id": "p1", "title": "Write report"},
    )
    assert registered.status_code == 200
    assert registered.json()["success"] is True
    assert registered.json()["tool"] == "ticktick_register_task_id"

    via_shortcut = client.post("/api/ticktick/cache/tasks", json={"project_id": "p1"})
    via_execute = client.post(
        "/api/ticktick/execute/ticktick_get_cached_tasks", json={"project_id": "p1"}
    )
    assert via_shortcut.status_code == via_execute.status_code == 200
    assert via_shortcut.json() == via_execute.json()
    assert via_shortcut.json()["data"]["count"] == 1


def test_empty_body_means_no_arguments(client: TestClient) -> None:
    response = client.post("/api/ticktick/projects")
    assert response.status_code == 200
    assert response.json()["data"]["count"] == 1


def test_unknown_tool_returns_404(client: TestClient) -> None:
    response = client.post("/api/ticktick/execute/ticktick_nope", json={})
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["error_kind"] == "UnknownOperation"
    assert body["error"] == "Unknown tool: ticktick_nope"


def test_invalid_arguments_return_422(client: TestClient) -> None:
    response = client.post("/api/ticktick/tasks/create", json={"priority": 1})
    assert response.status_code == 422
    body = response.json()
    assert body["error_kind"] == "InvalidArgument"
    assert body["details"]["field"] == "title"


def test_malformed_json_returns_422(client: TestClient) -> None:
    response = client.post(
        "/api/ticktick/tasks/create",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 422
    assert response.json()["details"]["field"] == "body"


def test_non_object_body_returns_422(client: TestClient) -> None:
    response = client.post("/api/ticktick/tasks/create", json=["Buy milk"])
    assert response.status_code == 422
    assert response.json()["error"] == "Arguments must be a JSON object"


def test_upstream_failure_returns_502(client: TestClient) -> None:
    response = client.post(
        "/api/ticktick/tasks/details", json={"task_id": "t1", "project_id": "fail"}
    )
    assert response.status_code == 502
    body = response.json()
    assert body["error_kind"] == "UpstreamError"
    assert body["details"]["status_code"] == 500


def test_handler_failure_returns_500(client: TestClient) -> None:
    response = client.post("/api/ticktick/tasks/delete", json={"task_id": "ghost"})
    assert response.status_code == 500
    assert response.json()["error_kind"] == "HandlerError"


def test_unknown_path_returns_route_hint(client: TestClient) -> None:
    response = client.get("/api/ticktick/nowhere")
    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "Endpoint not found"
    assert "/api/docs" in body["available_endpoints"]


def test_wrong_method_keeps_default_error(client: TestClient) -> None:
    response = client.get("/api/ticktick/tasks/create")
    assert response.status_code == 405
    assert response.json() == {"detail": "Method Not Allowed"}


def test_missing_token_returns_502(settings, cache) -> None:
    from ticktick_mcp.app.runtime import build_runtime
    from ticktick_mcp.main import create_app

    runtime = build_runtime(settings.model_copy(update={"access_token": ""}), cache=cache)
    with TestClient(create_app(runtime=runtime)) as client:
        response = client.post("/api/ticktick/tasks/create", json={"title": "Buy milk"})
        docs = client.get("/api/docs").json()

    assert response.status_code == 502
    assert response.json()["error"] == "TICKTICK_ACCESS_TOKEN is not configured"
    assert docs["authentication"]["configured"] is False
