"""Pure AI suggestion logic - prompts, response parsing, offline fallbacks."""

import json
import re
from dataclasses import dataclass, field
from datetime import datetime

from .tasks import Priority, Task, TaskStatus

BREAKDOWN_SYSTEM_PROMPT = (
    "You are a productivity assistant that helps users break down complex tasks "
    "into manageable steps. For each task, provide 3-5 subtasks that would help "
    "complete the main task. Each subtask should have a clear title, brief "
    "description, priority level (high, medium, low), and estimated time in "
    "minutes to complete. Return your response as a JSON object with a "
    "'subtasks' array containing the subtasks."
)

WORKFLOW_SYSTEM_PROMPT = (
    "You are a productivity assistant that helps users optimize their workflow. "
    "Based on the user's tasks, provide helpful suggestions for improving their "
    "productivity and task management. Focus on practical advice that can be "
    "implemented immediately. Return your response as a JSON object with a "
    "'message' string and a 'suggestedActions' array of strings."
)

INSIGHT_SYSTEM_PROMPT = (
    "You analyze task history and give ONE productivity insight and ONE "
    "suggestion for improvement. Return a JSON object: "
    '{"insight": "...", "suggestion": "..."}. Keep each field under 100 '
    "characters. Be specific, personalized and actionable."
)

DEFAULT_SUBTASK_MINUTES = 30

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


@dataclass
class SubtaskSuggestion:
    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    estimated_duration: int = DEFAULT_SUBTASK_MINUTES  # minutes


@dataclass
class TaskBreakdown:
    subtasks: list[SubtaskSuggestion] = field(default_factory=list)

    @property
    def total_minutes(self) -> int:
        return sum(s.estimated_duration for s in self.subtasks)


@dataclass
class WorkflowSuggestion:
    message: str
    suggested_actions: list[str] = field(default_factory=list)


@dataclass
class ProductivityInsight:
    insight: str
    suggestion: str


# ============== Prompts ==============


def build_breakdown_prompt(task: Task) -> tuple[str, str]:
    """System and user prompt for breaking a task into subtasks."""
    description = task.description or "No description provided."
    user = (
        f'Please break down this task into subtasks: "{task.title}". '
        f'Description: "{description}". '
        f"Priority: {task.priority.value}. "
        f"Due: {task.due_date.date().isoformat() if task.due_date else 'no due date'}. "
        "Format your response as JSON."
    )
    return BREAKDOWN_SYSTEM_PROMPT, user


def build_workflow_prompt(tasks: list[Task]) -> tuple[str, str]:
    """System and user prompt for workflow optimization suggestions."""
    summary = [
        {
            "title": t.title,
            "priority": t.priority.value,
            "status": t.status.value,
            "dueDate": t.due_date.date().isoformat() if t.due_date else "no due date",
        }
        for t in tasks
    ]
    user = (
        f"Here are my current tasks: {json.dumps(summary)}. "
        "Please provide suggestions to optimize my workflow in JSON format."
    )
    return WORKFLOW_SYSTEM_PROMPT, user


def build_insight_prompt(tasks: list[Task], now: datetime) -> tuple[str, str]:
    """System and user prompt for a productivity insight over task history."""
    completed = []
    pending = []
    for t in tasks:
        if t.completed and t.completed_at:
            hours = (t.completed_at - t.created_at).total_seconds() / 3600
            completed.append(
                {
                    "title": t.title,
                    "priority": t.priority.value,
                    "created": t.created_at.isoformat(),
                    "completed": t.completed_at.isoformat(),
                    "hoursToComplete": round(hours, 1),
                }
            )
        elif not t.completed:
            pending.append(
                {
                    "title": t.title,
                    "priority": t.priority.value,
                    "created": t.created_at.isoformat(),
                    "dueDate": t.due_date.isoformat() if t.due_date else None,
                    "overdue": t.is_overdue(now),
                }
            )
    data = {"asOf": now.isoformat(), "completed": completed, "pending": pending}
    return INSIGHT_SYSTEM_PROMPT, f"Task data: {json.dumps(data)}"


# ============== Parsing ==============


def _load_json_object(text: str) -> dict:
    """Parse model output as a JSON object, tolerating a markdown code fence."""
    body = text.strip()
    match = _FENCE_RE.match(body)
    if match:
        body = match.group(1)
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise ValueError(f"Response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Response JSON is not an object")
    return data


def _parse_priority(value) -> Priority:
    try:
        return Priority(str(value).lower())
    except ValueError:
        return Priority.MEDIUM


def _parse_minutes(value) -> int:
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        return DEFAULT_SUBTASK_MINUTES
    return minutes if minutes > 0 else DEFAULT_SUBTASK_MINUTES


def parse_breakdown(text: str) -> TaskBreakdown:
    """Parse a subtask breakdown from model output."""
    data = _load_json_object(text)
    raw = data.get("subtasks")
    if not isinstance(raw, list):
        raise ValueError("Response has no 'subtasks' array")

    subtasks = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        title = str(item.get("title") or "").strip()
        if not title:
            continue
        subtasks.append(
            SubtaskSuggestion(
                title=title,
                description=str(item.get("description") or ""),
                priority=_parse_priority(item.get("priority")),
                estimated_duration=_parse_minutes(
                    item.get("estimatedDuration", item.get("estimated_duration"))
                ),
            )
        )

    if not subtasks:
        raise ValueError("Response contained no usable subtasks")
    return TaskBreakdown(subtasks=subtasks)


def parse_workflow_suggestion(text: str) -> WorkflowSuggestion:
    """Parse workflow suggestions from model output."""
    data = _load_json_object(text)
    message = str(data.get("message") or "").strip()
    actions = data.get("suggestedActions", data.get("suggested_actions", []))
    if not isinstance(actions, list):
        raise ValueError("'suggestedActions' is not a list")
    actions = [str(a).strip() for a in actions if str(a).strip()]
    if not message and not actions:
        raise ValueError("Response contained no suggestions")
    return WorkflowSuggestion(
        message=message or "Here's a suggestion to improve your workflow.",
        suggested_actions=actions,
    )


def parse_insight(text: str) -> ProductivityInsight:
    """Parse a productivity insight from model output."""
    data = _load_json_object(text)
    insight = str(data.get("insight") or "").strip()
    suggestion = str(data.get("suggestion") or "").strip()
    if not insight or not suggestion:
        raise ValueError("Response is missing 'insight' or 'suggestion'")
    return ProductivityInsight(insight=insight, suggestion=suggestion)


# ============== Offline Fallbacks ==============


def fallback_breakdown(task: Task) -> TaskBreakdown:
    """Canned breakdown used when no LLM is available."""
    if "project proposal" in task.title.lower():
        return TaskBreakdown(
            subtasks=[
                SubtaskSuggestion(
                    "Research industry trends",
                    "Gather recent industry data and trends to support proposal",
                    Priority.HIGH,
                    60,
                ),
                SubtaskSuggestion(
                    "Define project scope",
                    "Clearly outline what is and isn't included in the project",
                    Priority.HIGH,
                    45,
                ),
                SubtaskSuggestion(
                    "Create timeline",
                    "Develop a realistic project timeline with key milestones",
                    Priority.MEDIUM,
                    30,
                ),
                SubtaskSuggestion(
                    "Budget breakdown",
                    "Itemize all expected costs and resources required",
                    Priority.MEDIUM,
                    45,
                ),
            ]
        )

    return TaskBreakdown(
        subtasks=[
            SubtaskSuggestion(
                f"Research for {task.title}",
                "Gather necessary information and resources",
                Priority.HIGH,
                30,
            ),
            SubtaskSuggestion(
                f"Plan approach for {task.title}",
                "Create a step-by-step action plan",
                Priority.HIGH,
                20,
            ),
            SubtaskSuggestion(
                f"Execute {task.title}",
                "Complete the main work according to plan",
                Priority.MEDIUM,
                60,
            ),
            SubtaskSuggestion(
                f"Review {task.title}",
                "Check for quality and completeness",
                Priority.LOW,
                15,
            ),
        ]
    )


def fallback_workflow_suggestion(tasks: list[Task]) -> WorkflowSuggestion:
    """Canned workflow advice used when no LLM is available."""
    high_priority = sum(1 for t in tasks if t.priority is Priority.HIGH)

    if high_priority > 2:
        return WorkflowSuggestion(
            message=(
                "I noticed you have several high-priority tasks. "
                "Consider using Focus Mode to work on these one at a time."
            ),
            suggested_actions=[
                "Enable Focus Mode to concentrate on high-priority tasks",
                "Block out 90-minute focused work sessions with short breaks in between",
                "Consider delegating or rescheduling low-priority tasks",
            ],
        )

    return WorkflowSuggestion(
        message="Here's a suggestion to improve your workflow.",
        suggested_actions=[
            "Start your day by working on your most important task first",
            "Group similar tasks together to minimize context switching",
            "Schedule regular breaks to maintain productivity",
        ],
    )


def fallback_insight() -> ProductivityInsight:
    return ProductivityInsight(
        insight="Focus on high-priority tasks first to increase productivity.",
        suggestion="Try breaking complex tasks into smaller subtasks for easier progress.",
    )


def subtasks_from_breakdown(parent: Task, breakdown: TaskBreakdown) -> list[dict]:
    """
    Turn a breakdown into task drafts ready for the store.

    Subtasks inherit the parent's category and due date.
    """
    return [
        {
            "title": s.title,
            "description": s.description or None,
            "priority": s.priority,
            "status": TaskStatus.TODO,
            "category_id": parent.category_id,
            "due_date": parent.due_date,
            "parent_task_id": parent.id,
            "ai_generated": True,
            "owner_id": parent.owner_id,
        }
        for s in breakdown.subtasks
    ]
