"""JSON file-backed task storage adapter."""

import json
import logging
from pathlib import Path

from .memory_store import MemoryTaskStore

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the store file cannot be read or written."""

    pass


class JsonTaskStore(MemoryTaskStore):
    """
    Task storage persisted to a single JSON file.

    Implements TaskRepository protocol. Loads on construction and rewrites
    the file after every mutation.
    """

    def __init__(self, path: Path | str):
        super().__init__()
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if self.path.exists():
            self._load()

    def _load(self) -> None:
        try:
            data = json.loads(self.path.read_text())
            self.load_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Could not load task store {self.path}: {e}") from e
        logger.info(f"Loaded {len(self._tasks)} tasks from {self.path}")

    def _changed(self) -> None:
        self.save()

    def save(self) -> None:
        """Write the store atomically (temp file + rename)."""
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp.write_text(json.dumps(self.to_dict(), indent=2))
            tmp.replace(self.path)
        except OSError as e:
            raise StoreError(f"Could not write task store {self.path}: {e}") from e
