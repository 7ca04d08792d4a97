"""Tool implementations.

Handlers receive the validated input model and return a JSON-ready payload.
They await the TickTick client for upstream calls and push blocking cache
file I/O onto a worker thread. Cache failures are logged and never fail the
surrounding operation; upstream failures propagate.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, date, datetime
from typing import Any

from pydantic import BaseModel

from .cache import TaskCacheStore
from .schemas import (
    CreateProjectInput,
    CreateTaskInput,
    GetCachedTasksInput,
    GetHabitsInput,
    GetProjectsInput,
    GetTodayTasksInput,
    ImportFromCsvInput,
    RegisterTaskIdInput,
    StartFocusSessionInput,
    TaskRefInput,
    UpdateTaskInput,
)
from .upstream import TickTickClient

logger = logging.getLogger(__name__)

TICKTICK_STATUS_NORMAL = 0
TICKTICK_STATUS_COMPLETED = 2


def acknowledgement(message: str) -> Callable[[BaseModel], Awaitable[dict[str, Any]]]:
    """Build a handler that answers with a fixed acknowledgement and no upstream call."""

    async def _acknowledge(payload: BaseModel) -> dict[str, Any]:
        return {"status": "acknowledged", "message": message}

    return _acknowledge


class TickTickHandlers:
    def __init__(
        self,
        *,
        client: TickTickClient,
        cache: TaskCacheStore,
        inbox_project_id: str,
        today: Callable[[], date] | None = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.inbox_project_id = inbox_project_id
        self._today = today or (lambda: datetime.now(tz=UTC).date())

    async def get_projects(self, payload: GetProjectsInput) -> dict[str, Any]:
        projects = _as_list(await self.client.request("/project"))
        if not payload.include_archived:
            projects = [
                project
                for project in projects
                if not (isinstance(project, dict) and project.get("closed"))
            ]
        return {"count": len(projects), "projects": projects}

    async def create_project(self, payload: CreateProjectInput) -> dict[str, Any]:
        body: dict[str, Any] = {"name": payload.name, "color": payload.color}
        body.update(payload.model_extra or {})
        project = await self.client.request("/project", "POST", body)
        return {"project": project}

    async def create_task(self, payload: CreateTaskInput) -> dict[str, Any]:
        project_id = payload.project_id or self.inbox_project_id
        body: dict[str, Any] = {
            "title": payload.title,
            "content": payload.content,
            "projectId": project_id,
            "priority": payload.priority,
            "dueDate": _format_due_date(payload.due_date) if payload.due_date else None,
            "tags": payload.tags,
        }
        body.update(payload.model_extra or {})
        task = await self.client.request("/task", "POST", body)

        if isinstance(task, dict) and task.get("id"):
            await self._remember(
                str(task["id"]),
                str(task.get("projectId") or project_id),
                str(task.get("title") or payload.title),
            )
        else:
            logger.warning("tool_handler event=create_task_without_id project_id=%s", project_id)
        return {"task": task}

    async def update_task(self, payload: UpdateTaskInput) -> dict[str, Any]:
        project_id = await self._resolve_project(payload.task_id, payload.project_id)
        body: dict[str, Any] = {"id": payload.task_id, "projectId": project_id}
        if payload.title is not None:
            body["title"] = payload.title
        if payload.content is not None:
            body["content"] = payload.content
        if payload.priority is not None:
            body["priority"] = payload.priority
        if payload.completed is not None:
            body["status"] = (
                TICKTICK_STATUS_COMPLETED if payload.completed else TICKTICK_STATUS_NORMAL
            )
        body.update(payload.model_extra or {})

        task = await self.client.request(f"/task/{payload.task_id}", "POST", body)
        await self._refresh(task, task_id=payload.task_id, project_id=project_id, title=payload.title)
        return {"task": task}

    async def delete_task(self, payload: TaskRefInput) -> dict[str, Any]:
        project_id = await self._resolve_project(payload.task_id, payload.project_id)
        await self.client.request(f"/project/{project_id}/task/{payload.task_id}", "DELETE")
        return {"deleted": True, "task_id": payload.task_id, "project_id": project_id}

    async def complete_task(self, payload: TaskRefInput) -> dict[str, Any]:
        project_id = await self._resolve_project(payload.task_id, payload.project_id)
        await self.client.request(
            f"/project/{project_id}/task/{payload.task_id}/complete", "POST"
        )
        return {"completed": True, "task_id": payload.task_id, "project_id": project_id}

    async def get_task_details(self, payload: TaskRefInput) -> dict[str, Any]:
        project_id = await self._resolve_project(payload.task_id, payload.project_id)
        task = await self.client.request(f"/project/{project_id}/task/{payload.task_id}")
        await self._refresh(task, task_id=payload.task_id, project_id=project_id, title=None)
        return {"task": task}

    async def get_cached_tasks(self, payload: GetCachedTasksInput) -> dict[str, Any]:
        tasks = await asyncio.to_thread(
            self.cache.list_filtered,
            project_id=payload.project_id,
            include_stale=payload.include_stale,
        )
        return {"count": len(tasks), "tasks": tasks}

    async def register_task_id(self, payload: RegisterTaskIdInput) -> dict[str, Any]:
        record = await asyncio.to_thread(
            self.cache.put, payload.task_id, payload.project_id, payload.title
        )
        return {"task_id": payload.task_id, **record.model_dump()}

    async def import_from_csv(self, payload: ImportFromCsvInput) -> dict[str, Any]:
        summary = await asyncio.to_thread(self.cache.import_csv, payload.csv_data)
        return summary.model_dump()

    async def get_habits(self, payload: GetHabitsInput) -> dict[str, Any]:
        habits = _as_list(await self.client.request("/habits"))
        return {"count": len(habits), "habits": habits}

    async def start_focus_session(self, payload: StartFocusSessionInput) -> dict[str, Any]:
        body = {"taskId": payload.task_id, "duration": payload.duration}
        session = await self.client.request("/focus/start", "POST", body)
        return {"session": session, "duration": payload.duration, "task_id": payload.task_id}

    async def get_today_tasks(self, payload: GetTodayTasksInput) -> dict[str, Any]:
        today = self._today().isoformat()
        tasks = _as_list(await self.client.request("/tasks/today", params={"date": today}))
        return {"date": today, "count": len(tasks), "tasks": tasks}

    async def _resolve_project(self, task_id: str, project_id: str | None) -> str:
        if project_id:
            return project_id
        record = await asyncio.to_thread(self.cache.get, task_id)
        if record and record.get("project_id"):
            return str(record["project_id"])
        raise ValueError(
            f"project_id is required for task {task_id}: it is not in the task cache"
        )

    async def _remember(self, task_id: str, project_id: str, title: str) -> None:
        try:
            await asyncio.to_thread(self.cache.put, task_id, project_id, title)
        except Exception as exc:  # noqa: BLE001
            logger.warning("task_cache event=put_failed task_id=%s error=%s", task_id, exc)

    async def _refresh(
        self,
        task: Any,
        *,
        task_id: str,
        project_id: str,
        title: str | None,
    ) -> None:
        """Re-cache a task the upstream just returned, when its title is known."""
        upstream = task if isinstance(task, dict) else {}
        resolved_title = upstream.get("title") or title
        if not resolved_title:
            return
        await self._remember(
            str(upstream.get("id") or task_id),
            str(upstream.get("projectId") or project_id),
            str(resolved_title),
        )


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, list):
        return value
    if value is None:
        return []
    return [value]


def _format_due_date(raw: str) -> str:
    """Normalize an ISO date or datetime to the ``yyyy-MM-dd'T'HH:mm:ssZ`` form TickTick expects."""
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid due_date: {raw!r} is not an ISO-8601 date") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S+0000")
