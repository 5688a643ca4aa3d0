"""Task repository interface."""

from datetime import datetime
from typing import Protocol

from taskwise.core.tasks import Category, Task, TaskHistoryEntry, TaskStatus
from taskwise.core.views import UserPreferences


class TaskNotFoundError(LookupError):
    """Raised when a task id is not in the store."""

    def __init__(self, task_id: int):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class CategoryNotFoundError(LookupError):
    """Raised when a category id is not in the store."""

    def __init__(self, category_id: int):
        super().__init__(f"Category {category_id} not found")
        self.category_id = category_id


class TaskRepository(Protocol):
    """Interface for task, category, history and preference storage."""

    def list_tasks(self, owner_id: int = 1) -> list[Task]:
        """All tasks for a user, in creation order."""
        ...

    def list_tasks_by_status(self, status: TaskStatus, owner_id: int = 1) -> list[Task]:
        ...

    def get_task(self, task_id: int) -> Task:
        """Fetch a task. Raises TaskNotFoundError."""
        ...

    def create_task(self, now: datetime, **fields) -> Task:
        ...

    def update_task(self, task_id: int, now: datetime, **fields) -> Task:
        """Apply a partial update. Raises TaskNotFoundError."""
        ...

    def complete_task(self, task_id: int, now: datetime) -> Task:
        ...

    def reopen_task(self, task_id: int, now: datetime) -> Task:
        ...

    def delete_task(self, task_id: int, now: datetime) -> None:
        """Delete a task with its subtasks and history."""
        ...

    def list_categories(self, owner_id: int = 1) -> list[Category]:
        ...

    def get_category(self, category_id: int) -> Category:
        ...

    def create_category(self, name: str, color: str, now: datetime, owner_id: int = 1) -> Category:
        ...

    def update_category(self, category_id: int, **fields) -> Category:
        ...

    def delete_category(self, category_id: int) -> None:
        """Delete a category. Its tasks keep a dangling reference."""
        ...

    def list_history(self, owner_id: int = 1) -> list[TaskHistoryEntry]:
        """History entries, newest first."""
        ...

    def history_for_task(self, task_id: int) -> list[TaskHistoryEntry]:
        ...

    def get_preferences(
        self, owner_id: int = 1, default: UserPreferences | None = None
    ) -> UserPreferences:
        ...

    def update_preferences(self, preferences: UserPreferences, owner_id: int = 1) -> UserPreferences:
        ...
