"""
Task view derivation - filtering, sorting, summary counts and analytics.

Pure functions - no I/O, and no clock reads: every time-dependent
operation takes `now` explicitly.
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum

from .tasks import Category, Priority, Task, TaskStatus


class ViewType(Enum):
    LIST = "list"
    BOARD = "board"
    CALENDAR = "calendar"
    CARD = "card"


class SortKey(Enum):
    PRIORITY = "priority"
    DUE_DATE = "dueDate"
    TITLE = "title"
    CATEGORY = "category"
    CREATED = "created"


@dataclass
class ViewConfiguration:
    """User-controlled display parameters, independent of task data."""

    view: ViewType = ViewType.LIST
    sort_by: SortKey = SortKey.PRIORITY
    show_completed: bool = True
    categories: frozenset[int] = field(default_factory=frozenset)
    search_query: str = ""


@dataclass
class FocusModeSettings:
    """Which task classes focus mode surfaces, and for how long."""

    enabled: bool = False
    duration: int = 60  # minutes
    show_high_priority: bool = True
    show_today_tasks: bool = True
    show_medium_priority: bool = False


@dataclass(frozen=True)
class SummaryCounts:
    """Dashboard counters. Independent predicates, not a partition."""

    today: int = 0
    completed_today: int = 0
    overdue: int = 0
    upcoming: int = 0


def _end_of_day(now: datetime) -> datetime:
    return datetime.combine(now.date(), time.max)


def _text_key(value: str) -> tuple[str, str]:
    # Case-insensitive first, lowercase ahead of uppercase on a tie
    return (value.casefold(), value.swapcase())


def _due_key(task: Task) -> tuple[bool, datetime]:
    # Tasks without a due date go after every dated task
    return (task.due_date is None, task.due_date or datetime.min)


def _category_names(categories: Iterable[Category] | Mapping[int, Category]) -> dict[int, str]:
    values = categories.values() if isinstance(categories, Mapping) else categories
    return {c.id: c.name for c in values}


# ============== Filtering ==============


def filter_standard(tasks: list[Task], config: ViewConfiguration) -> list[Task]:
    """Apply completion, category and search filters in that order."""
    result = list(tasks)

    if not config.show_completed:
        result = [t for t in result if t.status is not TaskStatus.COMPLETED]

    if config.categories:
        result = [t for t in result if t.category_id is not None and t.category_id in config.categories]

    query = config.search_query.strip()
    if query:
        result = [t for t in result if t.matches(query)]

    return result


def in_focus(task: Task, focus: FocusModeSettings, now: datetime) -> bool:
    """
    True if any enabled focus rule selects the task.

    Completion status is not consulted: a completed high-priority task
    still qualifies.
    """
    if focus.show_high_priority and task.priority is Priority.HIGH:
        return True
    if focus.show_today_tasks and task.is_due_on(now.date()):
        return True
    if focus.show_medium_priority and task.priority is Priority.MEDIUM:
        return True
    return False


def filter_focus(tasks: list[Task], focus: FocusModeSettings, now: datetime) -> list[Task]:
    """Keep tasks selected by at least one focus rule."""
    return [t for t in tasks if in_focus(t, focus, now)]


# ============== Sorting ==============


def sort_tasks(
    tasks: list[Task],
    sort_by: SortKey,
    categories: Iterable[Category] | Mapping[int, Category] = (),
) -> list[Task]:
    """
    Sort tasks by the given key. Always stable.

    priority: high -> medium -> low, then due date ascending, undated last.
    dueDate: ascending, undated last.
    title: case-insensitive ascending.
    category: category name ascending; missing categories sort as "".
    created: newest first.
    """
    match sort_by:
        case SortKey.PRIORITY:
            return sorted(tasks, key=lambda t: (t.priority.rank, *_due_key(t)))
        case SortKey.DUE_DATE:
            return sorted(tasks, key=_due_key)
        case SortKey.TITLE:
            return sorted(tasks, key=lambda t: _text_key(t.title))
        case SortKey.CATEGORY:
            names = _category_names(categories)
            return sorted(tasks, key=lambda t: _text_key(names.get(t.category_id, "")))
        case SortKey.CREATED:
            return sorted(tasks, key=lambda t: t.created_at, reverse=True)
    raise ValueError(f"Unknown sort key: {sort_by!r}")


# ============== Views ==============


def derive_visible_tasks(
    tasks: list[Task],
    config: ViewConfiguration,
    focus: FocusModeSettings | None,
    now: datetime,
    categories: Iterable[Category] | Mapping[int, Category] = (),
) -> list[Task]:
    """
    Compute the ordered list of tasks a view should render.

    With focus mode enabled, the focus rules replace the standard filters
    entirely and the result is ordered by priority bucket only. Otherwise
    the standard filters run and the configured sort is applied.

    Pure function - never mutates `tasks`.
    """
    if focus is not None and focus.enabled:
        selected = filter_focus(tasks, focus, now)
        return sorted(selected, key=lambda t: t.priority.rank)

    visible = filter_standard(tasks, config)
    return sort_tasks(visible, config.sort_by, categories)


def select_focus_task(
    tasks: list[Task],
    current: Task | None,
    now: datetime,
) -> Task | None:
    """
    Pick the task focus mode should present next.

    First incomplete high-priority task in collection order, else the first
    incomplete task. The current focus task is skipped. Returns None when
    nothing is left to do. Selection does not depend on `now`; it is
    accepted so callers can pass the same arguments as the other views.
    """
    skip_id = current.id if current is not None else None
    remaining = [t for t in tasks if not t.completed and t.id != skip_id]

    for task in remaining:
        if task.priority is Priority.HIGH:
            return task
    return remaining[0] if remaining else None


def compute_summary_counts(tasks: list[Task], now: datetime) -> SummaryCounts:
    """Count today's, completed-today, overdue and upcoming tasks."""
    today = now.date()
    end_of_day = _end_of_day(now)

    return SummaryCounts(
        today=sum(1 for t in tasks if t.is_due_on(today)),
        completed_today=sum(
            1
            for t in tasks
            if t.status is TaskStatus.COMPLETED
            and t.completed_at is not None
            and t.completed_at.date() == today
        ),
        overdue=sum(
            1 for t in tasks if not t.completed and t.due_date is not None and t.due_date < now
        ),
        upcoming=sum(
            1 for t in tasks if not t.completed and t.due_date is not None and t.due_date > end_of_day
        ),
    )


WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
STATS_WINDOW = timedelta(days=28)


@dataclass(frozen=True)
class WeekdayStats:
    """Completions in the stats window and open due tasks for one weekday."""

    name: str
    completed: int = 0
    pending: int = 0


@dataclass(frozen=True)
class TaskStats:
    """Analytics over a whole task collection."""

    total: int
    completed: int
    pending: int
    high_priority: int
    completion_rate: int  # percent
    by_priority: dict[Priority, int]
    by_status: dict[TaskStatus, int]
    average_days_to_complete: float
    by_weekday: tuple[WeekdayStats, ...]

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "completed": self.completed,
            "pending": self.pending,
            "highPriority": self.high_priority,
            "completionRate": self.completion_rate,
            "byPriority": {p.value: n for p, n in self.by_priority.items()},
            "byStatus": {s.value: n for s, n in self.by_status.items()},
            "averageDaysToComplete": self.average_days_to_complete,
            "byWeekday": [
                {"name": d.name, "completed": d.completed, "pending": d.pending}
                for d in self.by_weekday
            ],
        }


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def _weekday_index(value: datetime) -> int:
    # Sunday first
    return (value.weekday() + 1) % 7


def compute_task_stats(tasks: list[Task], now: datetime) -> TaskStats:
    """
    Completion analytics for the stats view.

    Days to complete are whole days from creation to completion, never
    negative, averaged to one decimal. Weekday completions only count the
    last 28 days up to `now`; weekday pending counts every open task with a
    due date.
    """
    total = len(tasks)
    completed = sum(1 for t in tasks if t.completed)

    durations = [
        max(0, (t.completed_at - t.created_at).days)
        for t in tasks
        if t.completed and t.completed_at is not None
    ]
    average = _round_half_up(sum(durations) / len(durations), 1) if durations else 0.0

    window_start = now - STATS_WINDOW
    done_by_day = [0] * 7
    pending_by_day = [0] * 7
    for task in tasks:
        if task.completed_at is not None and window_start <= task.completed_at <= now:
            done_by_day[_weekday_index(task.completed_at)] += 1
        if task.due_date is not None and not task.completed:
            pending_by_day[_weekday_index(task.due_date)] += 1

    return TaskStats(
        total=total,
        completed=completed,
        pending=total - completed,
        high_priority=sum(1 for t in tasks if t.priority is Priority.HIGH),
        completion_rate=int(_round_half_up(completed * 100 / total)) if total else 0,
        by_priority={p: sum(1 for t in tasks if t.priority is p) for p in Priority},
        by_status={s: sum(1 for t in tasks if t.status is s) for s in TaskStatus},
        average_days_to_complete=average,
        by_weekday=tuple(
            WeekdayStats(name, done_by_day[i], pending_by_day[i])
            for i, name in enumerate(WEEKDAY_NAMES)
        ),
    )


def group_by_status(tasks: list[Task]) -> dict[TaskStatus, list[Task]]:
    """Board columns, one per status, each keeping input order."""
    grouped: dict[TaskStatus, list[Task]] = {status: [] for status in TaskStatus}
    for task in tasks:
        grouped[task.status].append(task)
    return grouped


def group_by_due_date(tasks: list[Task]) -> dict[date, list[Task]]:
    """Calendar view: dated tasks bucketed by due day, days ascending."""
    grouped: dict[date, list[Task]] = {}
    for task in tasks:
        if task.due_day is not None:
            grouped.setdefault(task.due_day, []).append(task)
    return dict(sorted(grouped.items()))


def today_tasks(tasks: list[Task], now: datetime) -> list[Task]:
    """Incomplete tasks due today."""
    today = now.date()
    return [t for t in tasks if not t.completed and t.is_due_on(today)]


def upcoming_tasks(
    tasks: list[Task],
    now: datetime,
    limit: int = 5,
) -> tuple[list[Task], list[Task]]:
    """
    Split incomplete future tasks into (due tomorrow, due later).

    Both lists are ordered by due date; the second is capped at `limit`.
    """
    tomorrow = now.date() + timedelta(days=1)
    pending = sorted(
        (t for t in tasks if not t.completed and t.due_day is not None and t.due_day >= tomorrow),
        key=_due_key,
    )
    due_tomorrow = [t for t in pending if t.due_day == tomorrow]
    later = [t for t in pending if t.due_day > tomorrow]
    return due_tomorrow, later[:limit]


@dataclass
class UserPreferences:
    """Persisted per-user display defaults, including focus mode state."""

    theme: str = "light"
    default_view: ViewType = ViewType.LIST
    default_sort: SortKey = SortKey.PRIORITY
    show_completed_tasks: bool = True
    focus: FocusModeSettings = field(default_factory=FocusModeSettings)

    def view_configuration(
        self,
        categories: Iterable[int] = (),
        search_query: str = "",
    ) -> ViewConfiguration:
        """Build a view configuration from these defaults."""
        return ViewConfiguration(
            view=self.default_view,
            sort_by=self.default_sort,
            show_completed=self.show_completed_tasks,
            categories=frozenset(categories),
            search_query=search_query,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "UserPreferences":
        return cls(
            theme=data.get("theme", "light"),
            default_view=ViewType(data.get("defaultView", ViewType.LIST.value)),
            default_sort=SortKey(data.get("defaultSort", SortKey.PRIORITY.value)),
            show_completed_tasks=bool(data.get("showCompletedTasks", True)),
            focus=FocusModeSettings(
                enabled=bool(data.get("focusModeEnabled", False)),
                duration=int(data.get("focusModeDuration", 60)),
                show_high_priority=bool(data.get("focusShowHighPriority", True)),
                show_today_tasks=bool(data.get("focusShowTodayTasks", True)),
                show_medium_priority=bool(data.get("focusShowMediumPriority", False)),
            ),
        )

    def to_dict(self) -> dict:
        return {
            "theme": self.theme,
            "defaultView": self.default_view.value,
            "defaultSort": self.default_sort.value,
            "showCompletedTasks": self.show_completed_tasks,
            "focusModeEnabled": self.focus.enabled,
            "focusModeDuration": self.focus.duration,
            "focusShowHighPriority": self.focus.show_high_priority,
            "focusShowTodayTasks": self.focus.show_today_tasks,
            "focusShowMediumPriority": self.focus.show_medium_priority,
        }
