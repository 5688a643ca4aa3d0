"""In-memory task storage adapter."""

import logging
from dataclasses import replace
from datetime import datetime, timedelta

from taskwise.core.tasks import (
    Category,
    Priority,
    Task,
    TaskHistoryEntry,
    TaskStatus,
    change_status,
    complete_task,
    reopen_task,
)
from taskwise.core.views import UserPreferences
from taskwise.ports.task_repo import CategoryNotFoundError, TaskNotFoundError

logger = logging.getLogger(__name__)

TASK_FIELDS = {
    "title",
    "description",
    "priority",
    "status",
    "category_id",
    "due_date",
    "parent_task_id",
    "ai_generated",
    "owner_id",
}
CATEGORY_FIELDS = {"name", "color"}


def _coerce_task_fields(fields: dict) -> dict:
    """Validate and normalize task fields at the storage boundary."""
    unknown = set(fields) - TASK_FIELDS - {"completed"}
    if unknown:
        raise ValueError(f"Unknown task fields: {', '.join(sorted(unknown))}")

    clean = dict(fields)
    if "title" in clean:
        title = (clean["title"] or "").strip()
        if not title:
            raise ValueError("Task title must not be empty")
        clean["title"] = title
    if "priority" in clean and not isinstance(clean["priority"], Priority):
        clean["priority"] = Priority(clean["priority"])
    if "status" in clean and not isinstance(clean["status"], TaskStatus):
        clean["status"] = TaskStatus(clean["status"])

    # Legacy boolean flag maps onto status
    if "completed" in clean:
        completed = clean.pop("completed")
        if "status" not in clean:
            clean["status"] = TaskStatus.COMPLETED if completed else TaskStatus.TODO
    return clean


class MemoryTaskStore:
    """
    Dict-backed task storage.

    Implements TaskRepository protocol. Ids auto-increment per collection
    starting at 1. Every mutation takes an explicit `now`.
    """

    def __init__(self):
        self._tasks: dict[int, Task] = {}
        self._categories: dict[int, Category] = {}
        self._history: dict[int, TaskHistoryEntry] = {}
        self._preferences: dict[int, UserPreferences] = {}
        self._next_task_id = 1
        self._next_category_id = 1
        self._next_history_id = 1

    def _changed(self) -> None:
        """Hook called after every mutation."""

    # ---- tasks ----

    def list_tasks(self, owner_id: int = 1) -> list[Task]:
        return [t for t in self._tasks.values() if t.owner_id == owner_id]

    def list_tasks_by_status(self, status: TaskStatus, owner_id: int = 1) -> list[Task]:
        return [t for t in self.list_tasks(owner_id) if t.status is status]

    def get_task(self, task_id: int) -> Task:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise TaskNotFoundError(task_id) from None

    def create_task(self, now: datetime, **fields) -> Task:
        clean = _coerce_task_fields(fields)
        if "title" not in clean:
            raise ValueError("Task title must not be empty")

        task_id = self._next_task_id
        self._next_task_id += 1

        status = clean.pop("status", TaskStatus.TODO)
        task = Task(id=task_id, created_at=now, updated_at=now, **clean)
        if status is not TaskStatus.TODO:
            task = change_status(task, status, now)

        self._tasks[task_id] = task
        self._record(task, "created", now, new_status=task.status)
        logger.debug(f"Created task {task_id}: {task.title}")
        self._changed()
        return task

    def update_task(self, task_id: int, now: datetime, **fields) -> Task:
        task = self.get_task(task_id)
        clean = _coerce_task_fields(fields)
        if clean.get("parent_task_id") is not None:
            self._check_parent(task_id, clean["parent_task_id"])
        status = clean.pop("status", None)

        updated = replace(task, updated_at=now, **clean)
        if status is not None and status is not task.status:
            updated = change_status(updated, status, now)
            if status is TaskStatus.COMPLETED:
                action = "completed"
            elif task.completed:
                action = "reopened"
            else:
                action = "status_changed"
            self._record(updated, action, now, task.status, status)
        else:
            self._record(updated, "updated", now)

        self._tasks[task_id] = updated
        self._changed()
        return updated

    def complete_task(self, task_id: int, now: datetime) -> Task:
        task = self.get_task(task_id)
        completed = complete_task(task, now)
        self._tasks[task_id] = completed
        self._record(completed, "completed", now, task.status, TaskStatus.COMPLETED)
        self._changed()
        return completed

    def reopen_task(self, task_id: int, now: datetime) -> Task:
        task = self.get_task(task_id)
        reopened = reopen_task(task, now)
        self._tasks[task_id] = reopened
        if task.completed:
            self._record(reopened, "reopened", now, task.status, reopened.status)
        self._changed()
        return reopened

    def delete_task(self, task_id: int, now: datetime) -> None:
        self.get_task(task_id)
        doomed = self._descendants(task_id)

        for tid in doomed:
            del self._tasks[tid]
        self._history = {
            hid: entry for hid, entry in self._history.items() if entry.task_id not in doomed
        }
        logger.debug(f"Deleted task {task_id} with {len(doomed) - 1} subtask(s) at {now.isoformat()}")
        self._changed()

    def subtasks(self, task_id: int) -> list[Task]:
        """Direct children of a task."""
        return [t for t in self._tasks.values() if t.parent_task_id == task_id]

    def _descendants(self, task_id: int) -> list[int]:
        """The task id followed by every id below it, each listed once."""
        found = [task_id]
        seen = {task_id}
        i = 0
        while i < len(found):
            for child in self.subtasks(found[i]):
                if child.id not in seen:
                    seen.add(child.id)
                    found.append(child.id)
            i += 1
        return found

    def _check_parent(self, task_id: int, parent_id: int) -> None:
        """Reject a parent that would put the task inside its own subtree."""
        self.get_task(parent_id)
        if parent_id in self._descendants(task_id):
            raise ValueError(f"Task {parent_id} cannot be the parent of task {task_id}")

    # ---- categories ----

    def list_categories(self, owner_id: int = 1) -> list[Category]:
        return [c for c in self._categories.values() if c.owner_id == owner_id]

    def get_category(self, category_id: int) -> Category:
        try:
            return self._categories[category_id]
        except KeyError:
            raise CategoryNotFoundError(category_id) from None

    def create_category(self, name: str, color: str, now: datetime, owner_id: int = 1) -> Category:
        name = name.strip()
        if not name:
            raise ValueError("Category name must not be empty")

        category = Category(
            id=self._next_category_id,
            name=name,
            color=color,
            owner_id=owner_id,
            created_at=now,
        )
        self._next_category_id += 1
        self._categories[category.id] = category
        self._changed()
        return category

    def update_category(self, category_id: int, **fields) -> Category:
        category = self.get_category(category_id)
        unknown = set(fields) - CATEGORY_FIELDS
        if unknown:
            raise ValueError(f"Unknown category fields: {', '.join(sorted(unknown))}")
        updated = replace(category, **fields)
        self._categories[category_id] = updated
        self._changed()
        return updated

    def delete_category(self, category_id: int) -> None:
        self.get_category(category_id)
        del self._categories[category_id]
        self._changed()

    # ---- history ----

    def _record(
        self,
        task: Task,
        action: str,
        now: datetime,
        previous_status: TaskStatus | None = None,
        new_status: TaskStatus | None = None,
    ) -> TaskHistoryEntry:
        entry = TaskHistoryEntry(
            id=self._next_history_id,
            task_id=task.id,
            owner_id=task.owner_id,
            action=action,
            timestamp=now,
            previous_status=previous_status,
            new_status=new_status,
        )
        self._next_history_id += 1
        self._history[entry.id] = entry
        return entry

    def list_history(self, owner_id: int = 1) -> list[TaskHistoryEntry]:
        entries = [h for h in self._history.values() if h.owner_id == owner_id]
        return sorted(entries, key=lambda h: (h.timestamp, h.id), reverse=True)

    def history_for_task(self, task_id: int) -> list[TaskHistoryEntry]:
        entries = [h for h in self._history.values() if h.task_id == task_id]
        return sorted(entries, key=lambda h: (h.timestamp, h.id), reverse=True)

    # ---- preferences ----

    def get_preferences(
        self, owner_id: int = 1, default: UserPreferences | None = None
    ) -> UserPreferences:
        """Stored preferences, else `default`, else built-in defaults."""
        return self._preferences.get(owner_id) or default or UserPreferences()

    def update_preferences(self, preferences: UserPreferences, owner_id: int = 1) -> UserPreferences:
        self._preferences[owner_id] = preferences
        self._changed()
        return preferences

    # ---- snapshots ----

    def to_dict(self) -> dict:
        """Serialize the whole store."""
        return {
            "tasks": [t.to_dict() for t in self._tasks.values()],
            "categories": [c.to_dict() for c in self._categories.values()],
            "history": [h.to_dict() for h in self._history.values()],
            "preferences": {str(uid): p.to_dict() for uid, p in self._preferences.items()},
        }

    def load_dict(self, data: dict) -> None:
        """Replace the store contents with a serialized snapshot."""
        tasks = [Task.from_dict(t) for t in data.get("tasks", [])]
        categories = [Category.from_dict(c) for c in data.get("categories", [])]
        history = [TaskHistoryEntry.from_dict(h) for h in data.get("history", [])]

        self._tasks = {t.id: t for t in tasks}
        self._categories = {c.id: c for c in categories}
        self._history = {h.id: h for h in history}
        self._preferences = {
            int(uid): UserPreferences.from_dict(p)
            for uid, p in data.get("preferences", {}).items()
        }
        self._next_task_id = max(self._tasks, default=0) + 1
        self._next_category_id = max(self._categories, default=0) + 1
        self._next_history_id = max(self._history, default=0) + 1

    def is_empty(self) -> bool:
        return not self._tasks and not self._categories


def seed_demo_data(store: MemoryTaskStore, now: datetime, owner_id: int = 1) -> None:
    """Load the demo categories and tasks."""
    work = store.create_category("Work", "#4338ca", now, owner_id)
    store.create_category("Personal", "#8b5cf6", now, owner_id)
    creative = store.create_category("Creative", "#ec4899", now, owner_id)
    health = store.create_category("Health", "#10b981", now, owner_id)

    today = now.replace(second=0, microsecond=0)
    demo_tasks = [
        (
            "Complete project proposal",
            "Finalize the project scope, timeline, and resource requirements.",
            Priority.HIGH,
            today,
            work,
        ),
        (
            "Schedule team meeting",
            "Coordinate with team members about the upcoming project kickoff.",
            Priority.MEDIUM,
            today.replace(hour=14, minute=0),
            work,
        ),
        (
            "Review monthly budget",
            "Check expenses against projections and prepare for quarterly review.",
            Priority.LOW,
            today.replace(hour=16, minute=30),
            work,
        ),
        (
            "Creative brainstorming session",
            "Gather inspiration for the new marketing campaign.",
            Priority.MEDIUM,
            today + timedelta(days=1),
            creative,
        ),
        (
            "Weekly yoga class",
            "Take time for self-care and relaxation at the studio.",
            Priority.LOW,
            today + timedelta(days=3),
            health,
        ),
        (
            "Client presentation deadline",
            "Finalize slides and rehearse for the quarterly review meeting.",
            Priority.HIGH,
            today + timedelta(days=4),
            work,
        ),
    ]
    for title, description, priority, due, category in demo_tasks:
        store.create_task(
            now,
            title=title,
            description=description,
            priority=priority,
            due_date=due,
            category_id=category.id,
            owner_id=owner_id,
        )

    for title, description, hours_ago in [
        ("Website design review", "Review the latest design mockups from the design team", 1),
        ("Morning team standup", "Daily team sync to discuss progress and blockers", 3),
    ]:
        task = store.create_task(
            now - timedelta(hours=hours_ago),
            title=title,
            description=description,
            priority=Priority.MEDIUM,
            category_id=work.id,
            owner_id=owner_id,
        )
        store.complete_task(task.id, now - timedelta(hours=hours_ago))

    logger.info(f"Seeded demo data for user {owner_id}")
