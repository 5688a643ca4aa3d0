"""Pure task domain logic - no I/O dependencies."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum


class Priority(Enum):
    """Task priority, most urgent first."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Position in PRIORITY_ORDER (0 = most urgent)."""
        return PRIORITY_ORDER.index(self)


PRIORITY_ORDER: tuple[Priority, ...] = (Priority.HIGH, Priority.MEDIUM, Priority.LOW)


class TaskStatus(Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """
    Parse an ISO-8601 timestamp into naive local time.

    Aware values are converted to the local zone and stripped, so the core
    only ever compares naive datetimes.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _pick(data: dict, *keys: str, default=None):
    """First present key wins (camelCase from the web app, snake_case from us)."""
    for key in keys:
        if key in data:
            return data[key]
    return default


@dataclass
class Task:
    """A task owned by a single user."""

    id: int
    title: str
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    description: str | None = None
    category_id: int | None = None
    due_date: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.min)
    updated_at: datetime | None = None
    parent_task_id: int | None = None
    ai_generated: bool = False
    owner_id: int = 1

    @property
    def completed(self) -> bool:
        return self.status is TaskStatus.COMPLETED

    @property
    def due_day(self) -> date | None:
        """Calendar day of the due date (time of day stripped)."""
        return self.due_date.date() if self.due_date else None

    def is_due_on(self, day: date) -> bool:
        return self.due_day == day

    def is_overdue(self, now: datetime) -> bool:
        """Incomplete and due strictly before now."""
        if self.completed or not self.due_date:
            return False
        return self.due_date < now

    def days_until_due(self, as_of: date) -> int | None:
        """Days until due date (negative if overdue)."""
        if not self.due_date:
            return None
        return (self.due_date.date() - as_of).days

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on title or description."""
        needle = query.casefold()
        if needle in self.title.casefold():
            return True
        return bool(self.description) and needle in self.description.casefold()

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from a stored or API record."""
        title = (data.get("title") or "").strip()
        if not title:
            raise ValueError("Task title must not be empty")

        status_raw = data.get("status")
        if status_raw:
            status = TaskStatus(status_raw)
        elif data.get("completed"):
            status = TaskStatus.COMPLETED
        else:
            status = TaskStatus.TODO

        # completed_at is only meaningful on a completed task
        completed_at = parse_datetime(_pick(data, "completedAt", "completed_at"))
        if status is not TaskStatus.COMPLETED:
            completed_at = None

        return cls(
            id=int(data["id"]),
            title=title,
            priority=Priority(data.get("priority") or Priority.MEDIUM.value),
            status=status,
            description=data.get("description") or None,
            category_id=_pick(data, "categoryId", "category_id"),
            due_date=parse_datetime(_pick(data, "dueDate", "due_date")),
            completed_at=completed_at,
            created_at=parse_datetime(_pick(data, "createdAt", "created_at")) or datetime.min,
            updated_at=parse_datetime(_pick(data, "updatedAt", "updated_at")),
            parent_task_id=_pick(data, "parentTaskId", "parent_task_id"),
            ai_generated=bool(_pick(data, "aiGenerated", "ai_generated", default=False)),
            owner_id=int(_pick(data, "userId", "owner_id", default=1)),
        )

    def to_dict(self) -> dict:
        """Serialize to a JSON-friendly record."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "status": self.status.value,
            "completed": self.completed,
            "categoryId": self.category_id,
            "dueDate": _format_datetime(self.due_date),
            "completedAt": _format_datetime(self.completed_at),
            "createdAt": _format_datetime(self.created_at),
            "updatedAt": _format_datetime(self.updated_at),
            "parentTaskId": self.parent_task_id,
            "aiGenerated": self.ai_generated,
            "userId": self.owner_id,
        }


@dataclass
class Category:
    """A user-defined task category."""

    id: int
    name: str
    color: str = "#6366f1"
    owner_id: int = 1
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Category":
        return cls(
            id=int(data["id"]),
            name=data["name"],
            color=data.get("color") or "#6366f1",
            owner_id=int(_pick(data, "userId", "owner_id", default=1)),
            created_at=parse_datetime(_pick(data, "createdAt", "created_at")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "userId": self.owner_id,
            "createdAt": _format_datetime(self.created_at),
        }


@dataclass
class TaskHistoryEntry:
    """One recorded change to a task."""

    id: int
    task_id: int
    action: str
    timestamp: datetime
    previous_status: TaskStatus | None = None
    new_status: TaskStatus | None = None
    owner_id: int = 1

    @classmethod
    def from_dict(cls, data: dict) -> "TaskHistoryEntry":
        previous = _pick(data, "previousStatus", "previous_status")
        new = _pick(data, "newStatus", "new_status")
        return cls(
            id=int(data["id"]),
            task_id=int(_pick(data, "taskId", "task_id")),
            action=data["action"],
            timestamp=parse_datetime(data["timestamp"]),
            previous_status=TaskStatus(previous) if previous else None,
            new_status=TaskStatus(new) if new else None,
            owner_id=int(_pick(data, "userId", "owner_id", default=1)),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "taskId": self.task_id,
            "userId": self.owner_id,
            "action": self.action,
            "previousStatus": self.previous_status.value if self.previous_status else None,
            "newStatus": self.new_status.value if self.new_status else None,
            "timestamp": _format_datetime(self.timestamp),
        }


# ============== Status Transitions ==============


def change_status(task: Task, status: TaskStatus, now: datetime) -> Task:
    """
    Move a task to a new status.

    Keeps completed_at in step with the status: set when entering
    COMPLETED, cleared when leaving it. Pure function - returns a new Task.
    """
    if status is task.status:
        return replace(task, updated_at=now)

    completed_at = now if status is TaskStatus.COMPLETED else None
    return replace(task, status=status, completed_at=completed_at, updated_at=now)


def complete_task(task: Task, now: datetime) -> Task:
    """Mark a task completed."""
    return change_status(task, TaskStatus.COMPLETED, now)


def reopen_task(task: Task, now: datetime) -> Task:
    """Move a completed task back to todo; other statuses are left alone."""
    if not task.completed:
        return replace(task, updated_at=now)
    return change_status(task, TaskStatus.TODO, now)
