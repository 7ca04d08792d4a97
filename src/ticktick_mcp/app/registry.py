"""Tool registry: the ordered catalog both transports advertise and dispatch from.

Terms used in this file:
- ToolSpec: name, description, pydantic input model and async handler of one
  tool, plus an optional HTTP shortcut route.
- input_schema: the JSON Schema generated from the input model; MCP clients
  receive it in tools/list and HTTP clients in GET /tools.
- Acknowledgement tools: catalog entries with no TickTick endpoint behind
  them; they answer with a fixed message.

The registry is filled once by ``build_registry`` and only read afterwards.
Names are unique and listing keeps registration order.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from . import schemas
from .errors import DuplicateToolError, ToolNotFoundError
from .handlers import TickTickHandlers, acknowledgement

ToolHandler = Callable[[Any], Awaitable[Any]]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_model: type[BaseModel]
    handler: ToolHandler
    # Dedicated HTTP shortcut; tools without one are reachable via /execute.
    route: str | None = None

    def input_schema(self) -> dict[str, Any]:
        schema = self.input_model.model_json_schema()
        schema.setdefault("properties", {})
        return schema

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema(),
            "route": self.route,
        }


class ToolRegistry:
    """Populated once at startup and read-only afterwards."""

    def __init__(self, specs: Iterable[ToolSpec] = ()) -> None:
        self._specs: dict[str, ToolSpec] = {}
        for spec in specs:
            self.register(spec)

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._specs:
            raise DuplicateToolError(spec.name)
        self._specs[spec.name] = spec

    def lookup(self, name: str) -> ToolSpec:
        spec = self._specs.get(name)
        if spec is None:
            raise ToolNotFoundError(name)
        return spec

    def list_specs(self) -> list[ToolSpec]:
        return list(self._specs.values())

    def names(self) -> list[str]:
        return list(self._specs.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[ToolSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)


def build_registry(handlers: TickTickHandlers) -> ToolRegistry:
    return ToolRegistry(
        [
            # Projects and tasks
            ToolSpec(
                name="ticktick_get_projects",
                description="Get all projects from TickTick",
                input_model=schemas.GetProjectsInput,
                handler=handlers.get_projects,
                route="/api/ticktick/projects",
            ),
            ToolSpec(
                name="ticktick_create_project",
                description="Create a new project in TickTick",
                input_model=schemas.CreateProjectInput,
                handler=handlers.create_project,
                route="/api/ticktick/projects/create",
            ),
            ToolSpec(
                name="ticktick_create_task",
                description="Create a new task in TickTick and cache its id",
                input_model=schemas.CreateTaskInput,
                handler=handlers.create_task,
                route="/api/ticktick/tasks/create",
            ),
            ToolSpec(
                name="ticktick_update_task",
                description="Update an existing task",
                input_model=schemas.UpdateTaskInput,
                handler=handlers.update_task,
                route="/api/ticktick/tasks/update",
            ),
            ToolSpec(
                name="ticktick_delete_task",
                description="Delete a task from TickTick",
                input_model=schemas.TaskRefInput,
                handler=handlers.delete_task,
                route="/api/ticktick/tasks/delete",
            ),
            ToolSpec(
                name="ticktick_complete_task",
                description="Mark a task as completed",
                input_model=schemas.TaskRefInput,
                handler=handlers.complete_task,
                route="/api/ticktick/tasks/complete",
            ),
            ToolSpec(
                name="ticktick_get_task_details",
                description="Get detailed information about a specific task",
                input_model=schemas.TaskRefInput,
                handler=handlers.get_task_details,
                route="/api/ticktick/tasks/details",
            ),
            # Task id cache
            ToolSpec(
                name="ticktick_get_cached_tasks",
                description="Get all cached tasks",
                input_model=schemas.GetCachedTasksInput,
                handler=handlers.get_cached_tasks,
                route="/api/ticktick/cache/tasks",
            ),
            ToolSpec(
                name="ticktick_register_task_id",
                description="Register existing task ID to cache",
                input_model=schemas.RegisterTaskIdInput,
                handler=handlers.register_task_id,
                route="/api/ticktick/cache/register",
            ),
            ToolSpec(
                name="ticktick_import_from_csv",
                description="Import tasks from CSV data",
                input_model=schemas.ImportFromCsvInput,
                handler=handlers.import_from_csv,
                route="/api/ticktick/cache/import-csv",
            ),
            # Habits
            ToolSpec(
                name="ticktick_get_habits",
                description="Get all habits from TickTick",
                input_model=schemas.GetHabitsInput,
                handler=handlers.get_habits,
                route="/api/ticktick/habits",
            ),
            ToolSpec(
                name="ticktick_create_habit",
                description="Create a new habit",
                input_model=schemas.CreateHabitInput,
                handler=acknowledgement("Habit created successfully"),
                route="/api/ticktick/habits/create",
            ),
            ToolSpec(
                name="ticktick_checkin_habit",
                description="Check in a habit for today",
                input_model=schemas.CheckinHabitInput,
                handler=acknowledgement("Habit checked in successfully"),
                route="/api/ticktick/habits/checkin",
            ),
            # Focus
            ToolSpec(
                name="ticktick_start_focus_session",
                description="Start a focus/Pomodoro session",
                input_model=schemas.StartFocusSessionInput,
                handler=handlers.start_focus_session,
                route="/api/ticktick/focus/start",
            ),
            ToolSpec(
                name="ticktick_get_focus_stats",
                description="Get focus time statistics",
                input_model=schemas.GetFocusStatsInput,
                handler=acknowledgement("Focus stats retrieved"),
                route="/api/ticktick/focus/stats",
            ),
            # Tags
            ToolSpec(
                name="ticktick_get_tags",
                description="Get all tags from TickTick",
                input_model=schemas.EmptyInput,
                handler=acknowledgement("Tags retrieved successfully"),
                route="/api/ticktick/tags",
            ),
            ToolSpec(
                name="ticktick_create_tag",
                description="Create a new tag",
                input_model=schemas.CreateTagInput,
                handler=acknowledgement("Tag created successfully"),
                route="/api/ticktick/tags/create",
            ),
            ToolSpec(
                name="ticktick_add_tag_to_task",
                description="Add a tag to a specific task",
                input_model=schemas.AddTagToTaskInput,
                handler=acknowledgement("Tag added to task"),
                route="/api/ticktick/tags/add-to-task",
            ),
            # Project management
            ToolSpec(
                name="ticktick_archive_project",
                description="Archive a completed project",
                input_model=schemas.ArchiveProjectInput,
                handler=acknowledgement("Project archived successfully"),
                route="/api/ticktick/projects/archive",
            ),
            ToolSpec(
                name="ticktick_duplicate_project",
                description="Create a copy of an existing project",
                input_model=schemas.DuplicateProjectInput,
                handler=acknowledgement("Project duplicated successfully"),
                route="/api/ticktick/projects/duplicate",
            ),
            # Calendar
            ToolSpec(
                name="ticktick_get_calendar_events",
                description="List calendar events",
                input_model=schemas.GetCalendarEventsInput,
                handler=acknowledgement("Calendar events retrieved"),
                route="/api/ticktick/calendar/events",
            ),
            ToolSpec(
                name="ticktick_create_calendar_event",
                description="Create calendar event",
                input_model=schemas.CreateCalendarEventInput,
                handler=acknowledgement("Calendar event created"),
                route="/api/ticktick/calendar/create-event",
            ),
            # Reporting
            ToolSpec(
                name="ticktick_get_productivity_report",
                description="Generate productivity reports",
                input_model=schemas.GetProductivityReportInput,
                handler=acknowledgement("Productivity report generated"),
                route="/api/ticktick/reports/productivity",
            ),
            ToolSpec(
                name="ticktick_get_today_tasks",
                description="Get tasks scheduled for today",
                input_model=schemas.GetTodayTasksInput,
                handler=handlers.get_today_tasks,
                route="/api/ticktick/tasks/today",
            ),
            ToolSpec(
                name="ticktick_get_overdue_tasks",
                description="Get all overdue tasks",
                input_model=schemas.GetOverdueTasksInput,
                handler=acknowledgement("Overdue tasks retrieved"),
                route="/api/ticktick/tasks/overdue",
            ),
            # Collaboration and notes
            ToolSpec(
                name="ticktick_share_project",
                description="Share project with others",
                input_model=schemas.ShareProjectInput,
                handler=acknowledgement("Project shared successfully"),
                route="/api/ticktick/projects/share",
            ),
            ToolSpec(
                name="ticktick_add_task_note",
                description="Add note to task",
                input_model=schemas.AddTaskNoteInput,
                handler=acknowledgement("Note added to task"),
                route="/api/ticktick/tasks/add-note",
            ),
        ]
    )
