"""Adapters - I/O implementations of ports."""

from .memory_store import MemoryTaskStore, seed_demo_data
from .json_store import JsonTaskStore, StoreError
from .openai_chat import OpenAIChatService

__all__ = [
    "MemoryTaskStore",
    "seed_demo_data",
    "JsonTaskStore",
    "StoreError",
    "OpenAIChatService",
]
