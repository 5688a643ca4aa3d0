"""Tests for core task logic."""

from datetime import date, datetime, timedelta, timezone

import pytest

from taskwise.core.tasks import (
    Category,
    Priority,
    Task,
    TaskHistoryEntry,
    TaskStatus,
    change_status,
    complete_task,
    parse_datetime,
    reopen_task,
)


# Fixtures
@pytest.fixture
def now():
    return datetime(2025, 1, 15, 10, 30)


@pytest.fixture
def task(now):
    return Task(
        id=1,
        title="Write report",
        description="Quarterly numbers",
        priority=Priority.HIGH,
        due_date=now + timedelta(hours=4),
        created_at=now - timedelta(days=2),
    )


class TestPriority:
    def test_rank_order(self):
        assert Priority.HIGH.rank < Priority.MEDIUM.rank < Priority.LOW.rank

    def test_values(self):
        assert Priority("high") is Priority.HIGH
        assert Priority.LOW.value == "low"


class TestTask:
    def test_completed_follows_status(self, task):
        assert not task.completed
        task.status = TaskStatus.COMPLETED
        assert task.completed

    def test_in_progress_is_not_completed(self, task):
        task.status = TaskStatus.IN_PROGRESS
        assert not task.completed

    def test_due_day(self, task, now):
        assert task.due_day == now.date()
        assert Task(id=2, title="x").due_day is None

    def test_is_overdue(self, task, now):
        assert not task.is_overdue(now)
        assert task.is_overdue(now + timedelta(hours=5))

    def test_completed_task_never_overdue(self, task, now):
        task.status = TaskStatus.COMPLETED
        assert not task.is_overdue(now + timedelta(days=5))

    def test_undated_never_overdue(self, now):
        assert not Task(id=2, title="x").is_overdue(now)

    def test_days_until_due(self, task, now):
        assert task.days_until_due(now.date()) == 0
        assert task.days_until_due(now.date() - timedelta(days=3)) == 3
        assert task.days_until_due(now.date() + timedelta(days=2)) == -2

    def test_matches_title_and_description(self, task):
        assert task.matches("REPORT")
        assert task.matches("quarterly")
        assert not task.matches("budget")

    def test_matches_without_description(self):
        assert not Task(id=2, title="Call mom").matches("dad")


class TestTaskFromDict:
    def test_camel_case_record(self):
        task = Task.from_dict(
            {
                "id": 7,
                "title": "  Plan trip ",
                "priority": "low",
                "status": "in_progress",
                "categoryId": 3,
                "dueDate": "2025-01-20T09:00:00",
                "createdAt": "2025-01-10T08:00:00",
                "parentTaskId": 2,
                "aiGenerated": True,
                "userId": 4,
            }
        )
        assert task.title == "Plan trip"
        assert task.priority is Priority.LOW
        assert task.status is TaskStatus.IN_PROGRESS
        assert task.category_id == 3
        assert task.due_date == datetime(2025, 1, 20, 9, 0)
        assert task.parent_task_id == 2
        assert task.ai_generated
        assert task.owner_id == 4

    def test_snake_case_record(self):
        task = Task.from_dict({"id": "3", "title": "x", "category_id": 1, "due_date": "2025-01-20"})
        assert task.id == 3
        assert task.category_id == 1
        assert task.due_date == datetime(2025, 1, 20)

    def test_defaults(self):
        task = Task.from_dict({"id": 1, "title": "x"})
        assert task.priority is Priority.MEDIUM
        assert task.status is TaskStatus.TODO
        assert task.created_at == datetime.min
        assert task.description is None

    def test_legacy_completed_flag(self):
        task = Task.from_dict({"id": 1, "title": "x", "completed": True})
        assert task.status is TaskStatus.COMPLETED

    def test_completed_at_dropped_for_open_status(self):
        task = Task.from_dict(
            {
                "id": 1,
                "title": "x",
                "status": "todo",
                "completed": True,
                "completedAt": "2024-06-10T09:00:00",
            }
        )
        assert task.status is TaskStatus.TODO
        assert task.completed_at is None

    @pytest.mark.parametrize("status", ["todo", "in_progress"])
    def test_completed_at_matches_completion(self, status):
        task = Task.from_dict({"id": 1, "title": "x", "status": status, "completedAt": "2024-06-10T09:00:00"})
        assert (task.completed_at is not None) == task.completed

    def test_completed_keeps_completed_at(self):
        task = Task.from_dict({"id": 1, "title": "x", "status": "completed", "completedAt": "2024-06-10T09:00:00"})
        assert task.completed_at == datetime(2024, 6, 10, 9, 0)

    def test_status_wins_over_completed_flag(self):
        task = Task.from_dict({"id": 1, "title": "x", "completed": True, "status": "todo"})
        assert task.status is TaskStatus.TODO

    def test_empty_title_rejected(self):
        with pytest.raises(ValueError, match="title"):
            Task.from_dict({"id": 1, "title": "   "})

    def test_unknown_priority_rejected(self):
        with pytest.raises(ValueError):
            Task.from_dict({"id": 1, "title": "x", "priority": "urgent"})

    def test_to_dict_roundtrip(self, task):
        assert Task.from_dict(task.to_dict()) == task

    def test_to_dict_includes_completed(self, task, now):
        data = complete_task(task, now).to_dict()
        assert data["completed"] is True
        assert data["status"] == "completed"
        assert data["completedAt"] == now.isoformat()


class TestParseDatetime:
    def test_none_and_empty(self):
        assert parse_datetime(None) is None
        assert parse_datetime("") is None

    def test_naive_passthrough(self):
        assert parse_datetime("2025-01-15T10:00:00") == datetime(2025, 1, 15, 10, 0)

    def test_zulu_becomes_naive_local(self):
        parsed = parse_datetime("2025-01-15T10:00:00Z")
        expected = datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert parsed == expected
        assert parsed.tzinfo is None

    def test_datetime_input(self):
        value = datetime(2025, 1, 15, 10, 0)
        assert parse_datetime(value) is value


class TestCategoryAndHistory:
    def test_category_defaults(self):
        category = Category.from_dict({"id": 1, "name": "Work"})
        assert category.color == "#6366f1"
        assert category.owner_id == 1

    def test_category_roundtrip(self, now):
        category = Category(id=2, name="Health", color="#10b981", created_at=now)
        assert Category.from_dict(category.to_dict()) == category

    def test_history_roundtrip(self, now):
        entry = TaskHistoryEntry(
            id=1,
            task_id=3,
            action="completed",
            timestamp=now,
            previous_status=TaskStatus.TODO,
            new_status=TaskStatus.COMPLETED,
        )
        assert TaskHistoryEntry.from_dict(entry.to_dict()) == entry

    def test_history_without_statuses(self, now):
        entry = TaskHistoryEntry.from_dict(
            {"id": 1, "taskId": 3, "action": "updated", "timestamp": now.isoformat()}
        )
        assert entry.previous_status is None
        assert entry.new_status is None


class TestStatusTransitions:
    def test_complete_sets_completed_at(self, task, now):
        done = complete_task(task, now)
        assert done.status is TaskStatus.COMPLETED
        assert done.completed_at == now
        assert done.updated_at == now

    def test_does_not_mutate(self, task, now):
        complete_task(task, now)
        assert task.status is TaskStatus.TODO
        assert task.completed_at is None

    def test_leaving_completed_clears_completed_at(self, task, now):
        done = complete_task(task, now)
        moved = change_status(done, TaskStatus.IN_PROGRESS, now + timedelta(hours=1))
        assert moved.status is TaskStatus.IN_PROGRESS
        assert moved.completed_at is None

    def test_completing_twice_keeps_first_timestamp(self, task, now):
        done = complete_task(task, now)
        again = complete_task(done, now + timedelta(hours=1))
        assert again.completed_at == now
        assert again.updated_at == now + timedelta(hours=1)

    def test_reopen(self, task, now):
        reopened = reopen_task(complete_task(task, now), now + timedelta(minutes=5))
        assert reopened.status is TaskStatus.TODO
        assert reopened.completed_at is None

    def test_reopen_leaves_in_progress_alone(self, task, now):
        started = change_status(task, TaskStatus.IN_PROGRESS, now)
        assert reopen_task(started, now).status is TaskStatus.IN_PROGRESS

    def test_due_date_untouched(self, task, now):
        assert complete_task(task, now).due_date == task.due_date

    def test_due_day_of_midnight(self):
        task = Task(id=1, title="x", due_date=datetime(2025, 1, 15, 0, 0))
        assert task.is_due_on(date(2025, 1, 15))
        assert not task.is_due_on(date(2025, 1, 14))
