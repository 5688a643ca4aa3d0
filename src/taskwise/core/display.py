"""Pure text formatting for task views - no I/O dependencies."""

from collections.abc import Mapping
from datetime import datetime

from .tasks import Category, Priority, Task, TaskStatus
from .views import SummaryCounts, TaskStats

PRIORITY_MARKERS = {
    Priority.HIGH: "!!!",
    Priority.MEDIUM: "!!",
    Priority.LOW: "!",
}

STATUS_LABELS = {
    TaskStatus.TODO: "To Do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.COMPLETED: "Completed",
}


def format_due(task: Task, now: datetime) -> str:
    """
    Describe when a task is due relative to now.

    Pure function - no I/O.
    """
    days = task.days_until_due(now.date())
    if days is None:
        return ""
    if task.is_overdue(now):
        return f"OVERDUE by {-days}d" if days < 0 else f"OVERDUE since {task.due_date:%H:%M}"
    if days < 0:
        return f"was due {-days}d ago"
    if days == 0:
        return "due TODAY"
    if days == 1:
        return "due tomorrow"
    return f"due in {days}d"


def format_task_line(task: Task, categories: Mapping[int, Category], now: datetime) -> str:
    """
    Format a single task for list display.

    Pure function - no I/O.
    """
    check = "x" if task.completed else " "
    marker = PRIORITY_MARKERS[task.priority]

    details = []
    due = format_due(task, now)
    if due:
        details.append(due)
    category = categories.get(task.category_id) if task.category_id is not None else None
    if category:
        details.append(category.name)
    if task.status is TaskStatus.IN_PROGRESS:
        details.append("in progress")
    if task.parent_task_id is not None:
        details.append(f"subtask of #{task.parent_task_id}")

    suffix = f" ({', '.join(details)})" if details else ""
    return f"[{check}] #{task.id:<3} {marker:3} {task.title}{suffix}"


def format_summary(counts: SummaryCounts) -> str:
    return (
        f"Today: {counts.today}  "
        f"Completed today: {counts.completed_today}  "
        f"Overdue: {counts.overdue}  "
        f"Upcoming: {counts.upcoming}"
    )


def format_stats(stats: TaskStats) -> str:
    """
    Render task analytics as plain text.

    Pure function - no I/O.
    """
    lines = [
        f"Total: {stats.total}  Completed: {stats.completed}  "
        f"Pending: {stats.pending}  High priority: {stats.high_priority}",
        f"Completion rate: {stats.completion_rate}%",
        f"Average days to complete: {stats.average_days_to_complete:.1f}",
        "",
        "By priority: " + ", ".join(f"{p.value} {n}" for p, n in stats.by_priority.items()),
        "By status: " + ", ".join(f"{STATUS_LABELS[s]} {n}" for s, n in stats.by_status.items()),
        "",
        "Day   Done  Due",
    ]
    for day in stats.by_weekday:
        lines.append(f"{day.name:5} {day.completed:>4} {day.pending:>4}")
    return "\n".join(lines)
