"""Tests for AI suggestion prompts, parsing and fallbacks."""

import json
from datetime import datetime, timedelta

import pytest

from taskwise.core.suggestions import (
    DEFAULT_SUBTASK_MINUTES,
    SubtaskSuggestion,
    TaskBreakdown,
    build_breakdown_prompt,
    build_insight_prompt,
    build_workflow_prompt,
    fallback_breakdown,
    fallback_insight,
    fallback_workflow_suggestion,
    parse_breakdown,
    parse_insight,
    parse_workflow_suggestion,
    subtasks_from_breakdown,
)
from taskwise.core.tasks import Priority, Task, TaskStatus


@pytest.fixture
def now():
    return datetime(2025, 1, 15, 12, 0)


@pytest.fixture
def task(now):
    return Task(
        id=3,
        title="Launch newsletter",
        description="First issue in February",
        priority=Priority.HIGH,
        category_id=2,
        due_date=datetime(2025, 2, 1, 9, 0),
        created_at=now - timedelta(days=1),
    )


class TestPrompts:
    def test_breakdown_prompt(self, task):
        system, user = build_breakdown_prompt(task)
        assert "subtasks" in system
        assert '"Launch newsletter"' in user
        assert "First issue in February" in user
        assert "Priority: high" in user
        assert "2025-02-01" in user

    def test_breakdown_prompt_without_description(self):
        _, user = build_breakdown_prompt(Task(id=1, title="x"))
        assert "No description provided." in user
        assert "no due date" in user

    def test_workflow_prompt_lists_tasks(self, task):
        _, user = build_workflow_prompt([task])
        payload = user.split("Here are my current tasks: ", 1)[1].split("]. ", 1)[0] + "]"
        assert json.loads(payload) == [
            {"title": "Launch newsletter", "priority": "high", "status": "todo", "dueDate": "2025-02-01"}
        ]

    def test_insight_prompt_splits_completed_and_pending(self, task, now):
        done = Task(
            id=4,
            title="Done",
            status=TaskStatus.COMPLETED,
            created_at=now - timedelta(hours=5),
            completed_at=now - timedelta(hours=2),
        )
        late = Task(id=5, title="Late", due_date=now - timedelta(days=1), created_at=now - timedelta(days=3))
        _, user = build_insight_prompt([task, done, late], now)
        data = json.loads(user.removeprefix("Task data: "))

        assert data["asOf"] == now.isoformat()
        assert data["completed"][0]["hoursToComplete"] == 3.0
        assert [p["title"] for p in data["pending"]] == ["Launch newsletter", "Late"]
        assert data["pending"][1]["overdue"] is True


class TestParseBreakdown:
    def test_parses_subtasks(self):
        text = json.dumps(
            {
                "subtasks": [
                    {"title": "Draft", "description": "Write it", "priority": "High", "estimatedDuration": 45},
                    {"title": "Edit", "priority": "low", "estimated_duration": "15"},
                ]
            }
        )
        breakdown = parse_breakdown(text)
        assert breakdown.subtasks[0] == SubtaskSuggestion("Draft", "Write it", Priority.HIGH, 45)
        assert breakdown.subtasks[1].estimated_duration == 15
        assert breakdown.total_minutes == 60

    def test_code_fence_tolerated(self):
        text = '```json\n{"subtasks": [{"title": "Draft"}]}\n```'
        assert parse_breakdown(text).subtasks[0].title == "Draft"

    def test_bad_values_get_defaults(self):
        text = json.dumps({"subtasks": [{"title": "Draft", "priority": "urgent", "estimatedDuration": "soon"}]})
        sub = parse_breakdown(text).subtasks[0]
        assert sub.priority is Priority.MEDIUM
        assert sub.estimated_duration == DEFAULT_SUBTASK_MINUTES

    def test_untitled_items_skipped(self):
        text = json.dumps({"subtasks": [{"title": ""}, "junk", {"title": "Keep"}]})
        assert [s.title for s in parse_breakdown(text).subtasks] == ["Keep"]

    @pytest.mark.parametrize(
        "text",
        [
            "not json",
            "[1, 2]",
            '{"steps": []}',
            '{"subtasks": [{"title": ""}]}',
        ],
    )
    def test_unusable(self, text):
        with pytest.raises(ValueError):
            parse_breakdown(text)


class TestParseWorkflowAndInsight:
    def test_workflow(self):
        text = json.dumps({"message": "Batch email", "suggestedActions": ["Check twice a day", " "]})
        result = parse_workflow_suggestion(text)
        assert result.message == "Batch email"
        assert result.suggested_actions == ["Check twice a day"]

    def test_workflow_actions_only(self):
        result = parse_workflow_suggestion(json.dumps({"suggestedActions": ["Rest"]}))
        assert result.message
        assert result.suggested_actions == ["Rest"]

    def test_workflow_empty(self):
        with pytest.raises(ValueError):
            parse_workflow_suggestion("{}")

    def test_insight(self):
        result = parse_insight('{"insight": "Mornings work", "suggestion": "Start early"}')
        assert result.insight == "Mornings work"
        assert result.suggestion == "Start early"

    def test_insight_missing_field(self):
        with pytest.raises(ValueError):
            parse_insight('{"insight": "Mornings work"}')


class TestFallbacks:
    def test_generic_breakdown(self, task):
        breakdown = fallback_breakdown(task)
        assert len(breakdown.subtasks) == 4
        assert breakdown.subtasks[0].title == "Research for Launch newsletter"
        assert breakdown.total_minutes == 125

    def test_project_proposal_breakdown(self):
        breakdown = fallback_breakdown(Task(id=1, title="Complete Project Proposal"))
        assert breakdown.subtasks[0].title == "Research industry trends"

    def test_workflow_with_many_high_priority(self):
        tasks = [Task(id=i, title=str(i), priority=Priority.HIGH) for i in range(3)]
        assert "Focus Mode" in fallback_workflow_suggestion(tasks).message

    def test_workflow_default(self):
        result = fallback_workflow_suggestion([])
        assert len(result.suggested_actions) == 3

    def test_insight(self):
        assert fallback_insight().insight


class TestSubtasksFromBreakdown:
    def test_inherits_from_parent(self, task):
        breakdown = TaskBreakdown([SubtaskSuggestion("Draft", "", Priority.LOW, 10)])
        [draft] = subtasks_from_breakdown(task, breakdown)
        assert draft["parent_task_id"] == task.id
        assert draft["category_id"] == task.category_id
        assert draft["due_date"] == task.due_date
        assert draft["ai_generated"] is True
        assert draft["priority"] is Priority.LOW
        assert draft["description"] is None
