"""Ports - interfaces/protocols for external dependencies."""

from .task_repo import CategoryNotFoundError, TaskNotFoundError, TaskRepository
from .llm_service import LLMService

__all__ = [
    "CategoryNotFoundError",
    "TaskNotFoundError",
    "TaskRepository",
    "LLMService",
]
