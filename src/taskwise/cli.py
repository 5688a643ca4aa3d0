"""taskwise CLI - personal task manager."""

import json
import logging
import sys
from dataclasses import replace
from datetime import datetime

import click

from .adapters.json_store import JsonTaskStore, StoreError
from .adapters.memory_store import seed_demo_data
from .config import load_config
from .core.display import STATUS_LABELS, format_stats, format_summary, format_task_line
from .core.tasks import Priority, Task, TaskStatus
from .core.views import (
    SortKey,
    ViewType,
    compute_task_stats,
    group_by_due_date,
    group_by_status,
    today_tasks,
    upcoming_tasks,
)
from .ports.task_repo import CategoryNotFoundError, TaskNotFoundError
from .workflows import (
    build_view,
    generate_productivity_insight,
    generate_task_breakdown,
    generate_workflow_suggestions,
    get_llm,
    get_store,
    load_preferences,
    next_focus_task,
    summarize,
)

DUE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M"]
PRIORITY_CHOICE = click.Choice([p.value for p in Priority])
STATUS_CHOICE = click.Choice([s.value for s in TaskStatus])


def _open_store() -> JsonTaskStore:
    config = load_config()
    try:
        return get_store(config)
    except StoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _fail(error: Exception) -> None:
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def _category_map(store: JsonTaskStore) -> dict:
    return {c.id: c for c in store.list_categories()}


def _echo_tasks(tasks: list[Task], categories: dict, now: datetime, empty_msg: str) -> None:
    if not tasks:
        click.echo(empty_msg)
        return
    for task in tasks:
        click.echo(format_task_line(task, categories, now))


def _echo_json(tasks: list[Task]) -> None:
    click.echo(json.dumps([t.to_dict() for t in tasks], indent=2))


@click.group()
@click.version_option()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """taskwise - personal task manager."""
    level = logging.DEBUG if debug else getattr(logging, load_config().log_level, logging.WARNING)
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=level,
    )


# ============== Views ==============


@main.command("list")
@click.option("--view", type=click.Choice([v.value for v in ViewType]), default=None, help="Layout")
@click.option("--sort", "sort_by", type=click.Choice([s.value for s in SortKey]), default=None)
@click.option("--category", "-c", "categories", type=int, multiple=True, help="Category id (repeatable)")
@click.option("--search", "-s", default="", help="Match title or description")
@click.option("--show-completed/--hide-completed", default=None)
@click.option("--focus/--no-focus", default=None, help="Override saved focus mode state")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_tasks(view, sort_by, categories, search, show_completed, focus, as_json: bool):
    """List tasks using the saved view preferences."""
    now = datetime.now()
    store = _open_store()
    preferences = load_preferences(store, load_config())

    result = build_view(
        store,
        preferences,
        now,
        view=ViewType(view) if view else None,
        sort_by=SortKey(sort_by) if sort_by else None,
        show_completed=show_completed,
        categories=categories,
        search_query=search,
        focus=focus,
    )

    if as_json:
        _echo_json(result.tasks)
        return

    category_map = _category_map(store)
    if result.focus_active:
        click.echo("Focus mode\n")

    match result.config.view:
        case ViewType.BOARD:
            for status, column in group_by_status(result.tasks).items():
                click.echo(f"### {STATUS_LABELS[status]} ({len(column)})")
                _echo_tasks(column, category_map, now, "  (empty)")
                click.echo()
        case ViewType.CALENDAR:
            by_day = group_by_due_date(result.tasks)
            if not by_day:
                click.echo("No scheduled tasks.")
            for day, day_tasks in by_day.items():
                click.echo(f"### {day.strftime('%A, %B %d')}")
                _echo_tasks(day_tasks, category_map, now, "")
                click.echo()
        case _:
            _echo_tasks(result.tasks, category_map, now, "No tasks.")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def summary(as_json: bool):
    """Show today's, completed, overdue and upcoming counts."""
    counts = summarize(_open_store(), datetime.now())
    if as_json:
        click.echo(
            json.dumps(
                {
                    "today": counts.today,
                    "completedToday": counts.completed_today,
                    "overdue": counts.overdue,
                    "upcoming": counts.upcoming,
                },
                indent=2,
            )
        )
    else:
        click.echo(format_summary(counts))


@main.command()
def today():
    """List incomplete tasks due today."""
    now = datetime.now()
    store = _open_store()
    _echo_tasks(today_tasks(store.list_tasks(), now), _category_map(store), now, "Nothing due today.")


@main.command()
@click.option("--limit", default=5, show_default=True, help="Max tasks after tomorrow")
def upcoming(limit: int):
    """List tasks due tomorrow and in the next few days."""
    now = datetime.now()
    store = _open_store()
    tomorrow, later = upcoming_tasks(store.list_tasks(), now, limit)
    if not tomorrow and not later:
        click.echo("No upcoming tasks scheduled.")
        return

    category_map = _category_map(store)
    if tomorrow:
        click.echo("### Tomorrow")
        _echo_tasks(tomorrow, category_map, now, "")
    if later:
        if tomorrow:
            click.echo()
        click.echo("### Next few days")
        _echo_tasks(later, category_map, now, "")


@main.command("next")
@click.option("--skip", "skip_id", type=int, default=None, help="Current focus task to skip")
def next_task(skip_id: int | None):
    """Show the task to focus on next."""
    now = datetime.now()
    store = _open_store()
    try:
        task = next_focus_task(store, now, skip_id)
    except TaskNotFoundError as e:
        _fail(e)

    if task is None:
        click.echo("All tasks complete.")
        return
    click.echo(format_task_line(task, _category_map(store), now))


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(as_json: bool):
    """Show completion analytics for all tasks."""
    result = compute_task_stats(_open_store().list_tasks(), datetime.now())
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        click.echo(format_stats(result))


# ============== Task Editing ==============


@main.command()
@click.argument("title")
@click.option("--description", "-d", default=None)
@click.option("--priority", "-p", type=PRIORITY_CHOICE, default=Priority.MEDIUM.value, show_default=True)
@click.option("--due", type=click.DateTime(formats=DUE_FORMATS), default=None, help="YYYY-MM-DD[ HH:MM]")
@click.option("--category", "-c", "category_id", type=int, default=None)
@click.option("--parent", "parent_task_id", type=int, default=None, help="Parent task id")
def add(title, description, priority, due, category_id, parent_task_id):
    """Create a task."""
    store = _open_store()
    try:
        if category_id is not None:
            store.get_category(category_id)
        if parent_task_id is not None:
            store.get_task(parent_task_id)
        task = store.create_task(
            datetime.now(),
            title=title,
            description=description,
            priority=priority,
            due_date=due,
            category_id=category_id,
            parent_task_id=parent_task_id,
        )
    except (ValueError, TaskNotFoundError, CategoryNotFoundError, StoreError) as e:
        _fail(e)
    click.echo(f"Created #{task.id}: {task.title}")


@main.command()
@click.argument("task_id", type=int)
@click.option("--title", default=None)
@click.option("--description", "-d", default=None)
@click.option("--priority", "-p", type=PRIORITY_CHOICE, default=None)
@click.option("--due", type=click.DateTime(formats=DUE_FORMATS), default=None)
@click.option("--clear-due", is_flag=True, help="Remove the due date")
@click.option("--category", "-c", "category_id", type=int, default=None)
@click.option("--clear-category", is_flag=True, help="Remove the category")
def edit(task_id, title, description, priority, due, clear_due, category_id, clear_category):
    """Update a task's fields."""
    fields = {}
    if title is not None:
        fields["title"] = title
    if description is not None:
        fields["description"] = description or None
    if priority is not None:
        fields["priority"] = priority
    if due is not None or clear_due:
        fields["due_date"] = None if clear_due else due
    if category_id is not None or clear_category:
        fields["category_id"] = None if clear_category else category_id

    if not fields:
        click.echo("Nothing to change.")
        return

    store = _open_store()
    try:
        if fields.get("category_id") is not None:
            store.get_category(fields["category_id"])
        task = store.update_task(task_id, datetime.now(), **fields)
    except (ValueError, TaskNotFoundError, CategoryNotFoundError, StoreError) as e:
        _fail(e)
    click.echo(f"Updated #{task.id}: {task.title}")


@main.command()
@click.argument("task_id", type=int)
def complete(task_id: int):
    """Mark a task completed."""
    store = _open_store()
    try:
        task = store.complete_task(task_id, datetime.now())
    except (TaskNotFoundError, StoreError) as e:
        _fail(e)
    click.echo(f"✓ Completed #{task.id}: {task.title}")


@main.command()
@click.argument("task_id", type=int)
def reopen(task_id: int):
    """Move a completed task back to todo."""
    store = _open_store()
    try:
        task = store.reopen_task(task_id, datetime.now())
    except (TaskNotFoundError, StoreError) as e:
        _fail(e)
    click.echo(f"Reopened #{task.id}: {task.title}")


@main.command()
@click.argument("task_id", type=int)
@click.argument("status", type=STATUS_CHOICE)
def status(task_id: int, status: str):
    """Set a task's status (todo, in_progress, completed)."""
    store = _open_store()
    try:
        task = store.update_task(task_id, datetime.now(), status=status)
    except (TaskNotFoundError, StoreError) as e:
        _fail(e)
    click.echo(f"#{task.id} is now {STATUS_LABELS[task.status]}")


@main.command()
@click.argument("task_id", type=int)
@click.option("--yes", is_flag=True, help="Don't ask for confirmation")
def delete(task_id: int, yes: bool):
    """Delete a task, its subtasks and its history."""
    store = _open_store()
    try:
        task = store.get_task(task_id)
    except TaskNotFoundError as e:
        _fail(e)

    children = store.subtasks(task_id)
    if not yes:
        extra = f" and {len(children)} subtask(s)" if children else ""
        if not click.confirm(f"Delete #{task.id} '{task.title}'{extra}?"):
            return

    try:
        store.delete_task(task_id, datetime.now())
    except StoreError as e:
        _fail(e)
    click.echo(f"Deleted #{task_id}")


# ============== Categories ==============


@main.group()
def categories():
    """Manage categories."""
    pass


@categories.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def categories_list(as_json: bool):
    """List categories."""
    store = _open_store()
    cats = store.list_categories()
    if as_json:
        click.echo(json.dumps([c.to_dict() for c in cats], indent=2))
        return
    if not cats:
        click.echo("No categories.")
        return
    counts = {}
    for task in store.list_tasks():
        if not task.completed and task.category_id is not None:
            counts[task.category_id] = counts.get(task.category_id, 0) + 1
    for cat in cats:
        click.echo(f"#{cat.id:<3} {cat.name} ({cat.color}) - {counts.get(cat.id, 0)} open")


@categories.command("add")
@click.argument("name")
@click.option("--color", default="#6366f1", show_default=True)
def categories_add(name: str, color: str):
    """Create a category."""
    store = _open_store()
    try:
        cat = store.create_category(name, color, datetime.now())
    except (ValueError, StoreError) as e:
        _fail(e)
    click.echo(f"Created category #{cat.id}: {cat.name}")


@categories.command("rename")
@click.argument("category_id", type=int)
@click.argument("name")
def categories_rename(category_id: int, name: str):
    """Rename a category."""
    store = _open_store()
    try:
        cat = store.update_category(category_id, name=name)
    except (CategoryNotFoundError, StoreError) as e:
        _fail(e)
    click.echo(f"Renamed category #{cat.id} to {cat.name}")


@categories.command("delete")
@click.argument("category_id", type=int)
def categories_delete(category_id: int):
    """Delete a category. Its tasks are kept."""
    store = _open_store()
    try:
        store.delete_category(category_id)
    except (CategoryNotFoundError, StoreError) as e:
        _fail(e)
    click.echo(f"Deleted category #{category_id}")


# ============== History ==============


@main.command()
@click.option("--task", "task_id", type=int, default=None, help="Only this task's history")
@click.option("--limit", default=20, show_default=True)
def history(task_id: int | None, limit: int):
    """Show recent task changes."""
    store = _open_store()
    entries = store.history_for_task(task_id) if task_id is not None else store.list_history()
    if not entries:
        click.echo("No history.")
        return

    titles = {t.id: t.title for t in store.list_tasks()}
    for entry in entries[:limit]:
        change = ""
        if entry.previous_status and entry.new_status:
            change = f" ({entry.previous_status.value} -> {entry.new_status.value})"
        title = titles.get(entry.task_id, "?")
        click.echo(f"{entry.timestamp:%Y-%m-%d %H:%M}  {entry.action:14} #{entry.task_id} {title}{change}")


# ============== Focus Mode ==============


@main.group()
def focus():
    """Configure focus mode."""
    pass


@focus.command("on")
@click.option("--duration", type=int, default=None, help="Minutes")
@click.option("--high/--no-high", default=None, help="Surface high-priority tasks")
@click.option("--today/--no-today", default=None, help="Surface tasks due today")
@click.option("--medium/--no-medium", default=None, help="Surface medium-priority tasks")
def focus_on(duration, high, today, medium):
    """Enable focus mode."""
    store = _open_store()
    preferences = load_preferences(store, load_config())

    settings = replace(preferences.focus, enabled=True)
    if duration is not None:
        settings.duration = duration
    if high is not None:
        settings.show_high_priority = high
    if today is not None:
        settings.show_today_tasks = today
    if medium is not None:
        settings.show_medium_priority = medium

    try:
        store.update_preferences(replace(preferences, focus=settings))
    except StoreError as e:
        _fail(e)
    click.echo(f"Focus mode enabled for {settings.duration} minutes.")


@focus.command("off")
def focus_off():
    """Disable focus mode."""
    store = _open_store()
    preferences = load_preferences(store, load_config())
    try:
        store.update_preferences(replace(preferences, focus=replace(preferences.focus, enabled=False)))
    except StoreError as e:
        _fail(e)
    click.echo("Focus mode disabled.")


@focus.command("show")
def focus_show():
    """Show focus mode settings."""
    settings = load_preferences(_open_store(), load_config()).focus
    rules = [
        name
        for name, on in [
            ("high priority", settings.show_high_priority),
            ("due today", settings.show_today_tasks),
            ("medium priority", settings.show_medium_priority),
        ]
        if on
    ]
    click.echo(f"Focus mode: {'on' if settings.enabled else 'off'} ({settings.duration} min)")
    click.echo(f"Shows: {', '.join(rules) or 'nothing'}")


# ============== AI Suggestions ==============


@main.command()
@click.argument("task_id", type=int)
@click.option("--apply", is_flag=True, help="Create the suggested subtasks")
def breakdown(task_id: int, apply: bool):
    """Suggest subtasks for a task."""
    config = load_config()
    store = _open_store()
    try:
        result, created = generate_task_breakdown(store, task_id, get_llm(config), datetime.now(), apply)
    except (TaskNotFoundError, StoreError) as e:
        _fail(e)

    for sub in result.subtasks:
        click.echo(f"- [{sub.priority.value}] {sub.title} (~{sub.estimated_duration} min)")
        if sub.description:
            click.echo(f"    {sub.description}")
    click.echo(f"\nEstimated total: {result.total_minutes} min")
    if created:
        click.echo(f"Created subtasks: {', '.join(f'#{t.id}' for t in created)}")


@main.command()
def suggest():
    """Suggest workflow improvements."""
    config = load_config()
    result = generate_workflow_suggestions(_open_store(), get_llm(config))
    click.echo(result.message)
    for action in result.suggested_actions:
        click.echo(f"• {action}")


@main.command()
def insight():
    """Productivity insight from your task history."""
    config = load_config()
    result = generate_productivity_insight(_open_store(), get_llm(config), datetime.now())
    click.echo(f"Insight: {result.insight}")
    click.echo(f"Suggestion: {result.suggestion}")


@main.command()
def seed():
    """Load demo categories and tasks into an empty store."""
    store = _open_store()
    if not store.is_empty():
        click.echo("Store already has data; not seeding.", err=True)
        sys.exit(1)
    try:
        seed_demo_data(store, datetime.now())
    except StoreError as e:
        _fail(e)
    click.echo(f"Seeded {len(store.list_tasks())} tasks in {store.path}")


if __name__ == "__main__":
    main()
