"""Shared workflow layer between the CLI and the core.

Each function takes its collaborators (store, LLM) and the current time
explicitly, loads what it needs, runs the pure core and returns the result.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import datetime
from typing import TypeVar

from .adapters.json_store import JsonTaskStore
from .adapters.openai_chat import OpenAIChatService
from .config import Config
from .core.suggestions import (
    ProductivityInsight,
    TaskBreakdown,
    WorkflowSuggestion,
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
from .core.tasks import Task
from .core.views import (
    SortKey,
    SummaryCounts,
    UserPreferences,
    ViewConfiguration,
    ViewType,
    compute_summary_counts,
    derive_visible_tasks,
    select_focus_task,
)
from .ports.llm_service import LLMService
from .ports.task_repo import TaskRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_store(config: Config) -> JsonTaskStore:
    """Open the task store configured for this user."""
    return JsonTaskStore(config.store_path)


def get_llm(config: Config) -> LLMService | None:
    """LLM client, or None when no API key is configured."""
    if not config.openai_api_key:
        return None
    return OpenAIChatService(
        api_key=config.openai_api_key,
        model=config.openai_model,
        base_url=config.openai_base_url,
        timeout=config.llm_timeout,
    )


def load_preferences(store: TaskRepository, config: Config) -> UserPreferences:
    """Stored preferences, falling back to the config defaults."""
    return store.get_preferences(default=config.default_preferences())


# ============== Views ==============


@dataclass
class TaskView:
    """A derived view ready for rendering."""

    config: ViewConfiguration
    focus_active: bool
    tasks: list[Task]


def build_view(
    store: TaskRepository,
    preferences: UserPreferences,
    now: datetime,
    *,
    view: ViewType | None = None,
    sort_by: SortKey | None = None,
    show_completed: bool | None = None,
    categories: Iterable[int] = (),
    search_query: str = "",
    focus: bool | None = None,
) -> TaskView:
    """Apply CLI overrides on top of the saved preferences and derive the view."""
    config = preferences.view_configuration(categories, search_query)
    if view is not None:
        config.view = view
    if sort_by is not None:
        config.sort_by = sort_by
    if show_completed is not None:
        config.show_completed = show_completed

    focus_settings = preferences.focus
    if focus is not None:
        focus_settings = replace(focus_settings, enabled=focus)

    tasks = derive_visible_tasks(
        store.list_tasks(),
        config,
        focus_settings,
        now,
        categories=store.list_categories(),
    )
    return TaskView(config=config, focus_active=focus_settings.enabled, tasks=tasks)


def summarize(store: TaskRepository, now: datetime) -> SummaryCounts:
    return compute_summary_counts(store.list_tasks(), now)


def next_focus_task(store: TaskRepository, now: datetime, skip_id: int | None = None) -> Task | None:
    """The task focus mode should show next, skipping `skip_id` if given."""
    tasks = store.list_tasks()
    current = store.get_task(skip_id) if skip_id is not None else None
    return select_focus_task(tasks, current, now)


# ============== AI Suggestions ==============


def _ask(
    llm: LLMService | None,
    prompts: tuple[str, str],
    parse: Callable[[str], T],
    fallback: Callable[[], T],
) -> T:
    """Run a prompt through the LLM, falling back to canned output on failure."""
    if llm is None:
        logger.info("No LLM configured, using offline suggestions")
        return fallback()

    system, user = prompts
    try:
        return parse(llm.generate(user, system=system))
    except RuntimeError as e:
        logger.warning(f"LLM unavailable, using offline suggestions: {e}")
    except ValueError as e:
        logger.warning(f"Unusable LLM response, using offline suggestions: {e}")
    return fallback()


def generate_task_breakdown(
    store: TaskRepository,
    task_id: int,
    llm: LLMService | None,
    now: datetime,
    apply: bool = False,
) -> tuple[TaskBreakdown, list[Task]]:
    """
    Suggest subtasks for a task.

    With `apply`, the subtasks are created in the store as AI-generated
    children of the task. Returns the breakdown and any created tasks.
    """
    task = store.get_task(task_id)
    breakdown = _ask(
        llm,
        build_breakdown_prompt(task),
        parse_breakdown,
        lambda: fallback_breakdown(task),
    )

    created = []
    if apply:
        for draft in subtasks_from_breakdown(task, breakdown):
            created.append(store.create_task(now, **draft))
        logger.info(f"Created {len(created)} subtasks for task {task_id}")

    return breakdown, created


def generate_workflow_suggestions(store: TaskRepository, llm: LLMService | None) -> WorkflowSuggestion:
    tasks = store.list_tasks()
    return _ask(
        llm,
        build_workflow_prompt(tasks),
        parse_workflow_suggestion,
        lambda: fallback_workflow_suggestion(tasks),
    )


def generate_productivity_insight(
    store: TaskRepository,
    llm: LLMService | None,
    now: datetime,
) -> ProductivityInsight:
    tasks = store.list_tasks()
    return _ask(llm, build_insight_prompt(tasks, now), parse_insight, fallback_insight)
