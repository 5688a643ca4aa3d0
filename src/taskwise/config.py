"""Configuration management for taskwise."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .core.views import FocusModeSettings, SortKey, UserPreferences, ViewType

logger = logging.getLogger(__name__)

TASKWISE_HOME = Path(os.environ.get("TASKWISE_HOME", Path.home() / "taskwise"))
CONFIG_FILE = TASKWISE_HOME / "config" / "taskwise.conf"
DATA_DIR = TASKWISE_HOME / "data"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class Config:
    """taskwise configuration."""

    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    openai_base_url: str = "https://api.openai.com/v1"
    llm_timeout: int = 60
    data_file: str = ""
    log_level: str = "WARNING"
    # Defaults for a fresh store's preferences
    default_view: str = "list"
    default_sort: str = "priority"
    show_completed: bool = True
    focus_duration: int = 60
    focus_show_high_priority: bool = True
    focus_show_today_tasks: bool = True
    focus_show_medium_priority: bool = False

    @property
    def store_path(self) -> Path:
        if self.data_file:
            return Path(self.data_file).expanduser()
        return DATA_DIR / "tasks.json"

    def default_preferences(self) -> UserPreferences:
        """Preferences for a user who has never saved any."""
        return UserPreferences(
            default_view=ViewType(self.default_view),
            default_sort=SortKey(self.default_sort),
            show_completed_tasks=self.show_completed,
            focus=FocusModeSettings(
                duration=self.focus_duration,
                show_high_priority=self.focus_show_high_priority,
                show_today_tasks=self.focus_show_today_tasks,
                show_medium_priority=self.focus_show_medium_priority,
            ),
        )


def _parse_bool(key: str, value: str) -> bool | None:
    lowered = value.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    logger.warning(f"Ignoring {key.upper()}: expected a boolean, got {value!r}")
    return None


def _parse_int(key: str, value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring {key.upper()}: expected an integer, got {value!r}")
        return None


def _parse_choice(key: str, value: str, enum_cls) -> str | None:
    try:
        return enum_cls(value).value
    except ValueError:
        choices = ", ".join(e.value for e in enum_cls)
        logger.warning(f"Ignoring {key.upper()}: {value!r} is not one of {choices}")
        return None


def load_config(path: Path | None = None) -> Config:
    """Load configuration from taskwise.conf, then the environment."""
    config = Config()
    path = path or CONFIG_FILE

    if path.exists():
        _apply_file(config, path)

    if not config.openai_api_key:
        config.openai_api_key = os.environ.get("OPENAI_API_KEY", "")

    return config


def _unquote(value: str) -> str:
    """Strip matching quotes, or an inline `# comment` from a bare value."""
    if value[:1] in ('"', "'"):
        quote = value[0]
        end = value.find(quote, 1)
        return value[1:end] if end != -1 else value[1:]
    return value.split("#", 1)[0].strip()


def _apply_file(config: Config, path: Path) -> None:
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "openai_api_key":
                config.openai_api_key = value
            case "openai_model":
                config.openai_model = value
            case "openai_base_url":
                config.openai_base_url = value
            case "llm_timeout":
                if (parsed := _parse_int(key, value)) is not None:
                    config.llm_timeout = parsed
            case "data_file":
                config.data_file = value
            case "log_level":
                config.log_level = value.upper()
            case "default_view":
                if (choice := _parse_choice(key, value, ViewType)) is not None:
                    config.default_view = choice
            case "default_sort":
                if (choice := _parse_choice(key, value, SortKey)) is not None:
                    config.default_sort = choice
            case "show_completed":
                if (flag := _parse_bool(key, value)) is not None:
                    config.show_completed = flag
            case "focus_duration":
                if (parsed := _parse_int(key, value)) is not None:
                    config.focus_duration = parsed
            case "focus_show_high_priority":
                if (flag := _parse_bool(key, value)) is not None:
                    config.focus_show_high_priority = flag
            case "focus_show_today_tasks":
                if (flag := _parse_bool(key, value)) is not None:
                    config.focus_show_today_tasks = flag
            case "focus_show_medium_priority":
                if (flag := _parse_bool(key, value)) is not None:
                    config.focus_show_medium_priority = flag
            case _:
                logger.debug(f"Unknown config key: {key}")
