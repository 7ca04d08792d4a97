"""Argument schemas for every tool in the catalog.

Inputs are strict about declared types but keep unknown keys, so new
upstream fields can be passed through without a schema change.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ToolInput(BaseModel):
    """Base model for tool arguments."""

    model_config = ConfigDict(extra="allow", strict=True)


class EmptyInput(ToolInput):
    pass


class GetProjectsInput(ToolInput):
    include_archived: bool = Field(default=False, description="Include archived projects")


class CreateProjectInput(ToolInput):
    name: str = Field(description="Name of the project")
    color: str = Field(default="#3498db", description="Project color (hex code)")


class CreateTaskInput(ToolInput):
    title: str = Field(description="Task title")
    content: str = Field(default="", description="Task description/content")
    project_id: str | None = Field(default=None, description="Project ID to add task to")
    priority: int = Field(
        default=0, description="Task priority (0=None, 1=Low, 3=Medium, 5=High)"
    )
    due_date: str | None = Field(default=None, description="Due date in ISO format")
    tags: list[str] = Field(default_factory=list, description="Tags for the task")


class UpdateTaskInput(ToolInput):
    task_id: str = Field(description="ID of the task to update")
    project_id: str | None = Field(
        default=None, description="Project ID; looked up in the task cache when omitted"
    )
    title: str | None = Field(default=None, description="New task title")
    content: str | None = Field(default=None, description="New task description")
    priority: int | None = Field(default=None, description="New priority level")
    completed: bool | None = Field(default=None, description="Mark as completed/incomplete")


class TaskRefInput(ToolInput):
    task_id: str = Field(description="ID of the task")
    project_id: str | None = Field(
        default=None, description="Project ID; looked up in the task cache when omitted"
    )


class GetCachedTasksInput(ToolInput):
    project_id: str | None = Field(default=None, description="Filter by project ID")
    include_stale: bool = Field(default=True, description="Include stale tasks")


class RegisterTaskIdInput(ToolInput):
    task_id: str = Field(description="Task ID to register")
    project_id: str = Field(description="Project ID")
    title: str = Field(description="Task title")


class ImportFromCsvInput(ToolInput):
    csv_data: str = Field(description="CSV data with task_id,project_id,title format")


class GetHabitsInput(ToolInput):
    include_archived: bool = Field(default=False, description="Include archived habits")


class CreateHabitInput(ToolInput):
    name: str = Field(description="Name of the habit")
    frequency: str = Field(default="daily", description="Frequency: daily, weekly, or custom")
    goal: int = Field(default=1, description="Target count per frequency period")


class CheckinHabitInput(ToolInput):
    habit_id: str = Field(description="ID of the habit")
    date: str | None = Field(
        default=None, description="Date for check-in (YYYY-MM-DD), defaults to today"
    )
    count: int = Field(default=1, description="Number of times completed")


class StartFocusSessionInput(ToolInput):
    task_id: str | None = Field(default=None, description="ID of the task to focus on")
    duration: int = Field(default=25, description="Focus duration in minutes")


class GetFocusStatsInput(ToolInput):
    period: str = Field(default="today", description="Time period: today, week, month")


class CreateTagInput(ToolInput):
    name: str = Field(description="Name of the tag")
    color: str = Field(default="#3498db", description="Color of the tag")


class AddTagToTaskInput(ToolInput):
    task_id: str = Field(description="ID of the task")
    tag_name: str = Field(description="Name of the tag to add")


class ArchiveProjectInput(ToolInput):
    project_id: str = Field(description="ID of the project to archive")


class DuplicateProjectInput(ToolInput):
    project_id: str = Field(description="ID of the project to duplicate")
    new_name: str = Field(description="Name for the duplicated project")
    include_tasks: bool = Field(default=True, description="Include tasks in duplicate")


class GetCalendarEventsInput(ToolInput):
    start_date: str | None = Field(default=None, description="Start date (YYYY-MM-DD)")
    end_date: str | None = Field(default=None, description="End date (YYYY-MM-DD)")


class CreateCalendarEventInput(ToolInput):
    title: str = Field(description="Event title")
    start_time: str = Field(description="Event start time (ISO format)")
    end_time: str = Field(description="Event end time (ISO format)")


class GetProductivityReportInput(ToolInput):
    period: str = Field(default="week", description="Report period: week, month, quarter")
    include_charts: bool = Field(default=False, description="Include chart data")


class GetTodayTasksInput(ToolInput):
    include_overdue: bool = Field(default=True, description="Include overdue tasks")


class GetOverdueTasksInput(ToolInput):
    limit: int = Field(default=50, description="Maximum number of results")


PermissionLevel = Literal["view", "edit", "admin"]


class ShareProjectInput(ToolInput):
    project_id: str = Field(description="ID of the project to share")
    emails: list[str] = Field(description="Email addresses to share with")
    permission_level: PermissionLevel = Field(default="edit", description="Access level")


class AddTaskNoteInput(ToolInput):
    task_id: str = Field(description="ID of the task")
    note_content: str = Field(description="Note content")
