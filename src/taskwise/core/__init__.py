"""Functional core - pure business logic with no I/O."""

from .tasks import (
    Category,
    Priority,
    Task,
    TaskHistoryEntry,
    TaskStatus,
    change_status,
    complete_task,
    reopen_task,
)
from .views import (
    FocusModeSettings,
    SortKey,
    SummaryCounts,
    TaskStats,
    ViewConfiguration,
    UserPreferences,
    ViewType,
    compute_summary_counts,
    compute_task_stats,
    derive_visible_tasks,
    select_focus_task,
)
from .suggestions import (
    ProductivityInsight,
    SubtaskSuggestion,
    TaskBreakdown,
    WorkflowSuggestion,
)

__all__ = [
    # Tasks
    "Category",
    "Priority",
    "Task",
    "TaskHistoryEntry",
    "TaskStatus",
    "change_status",
    "complete_task",
    "reopen_task",
    # Views
    "FocusModeSettings",
    "SortKey",
    "SummaryCounts",
    "TaskStats",
    "ViewConfiguration",
    "UserPreferences",
    "ViewType",
    "compute_summary_counts",
    "compute_task_stats",
    "derive_visible_tasks",
    "select_focus_task",
    # Suggestions
    "ProductivityInsight",
    "SubtaskSuggestion",
    "TaskBreakdown",
    "WorkflowSuggestion",
]
