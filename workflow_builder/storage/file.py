"""
JSON-file workflow store.

Stores the workflow as a single JSON file named after the storage key.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from workflow_builder.core.errors import PersistenceError
from workflow_builder.core.models import Workflow
from workflow_builder.storage.base import WorkflowStore

logger = logging.getLogger(__name__)


class FileWorkflowStore(WorkflowStore):
    """Persist the workflow as <directory>/<key>.json."""

    def __init__(self, directory: Path | str, key: str = "smoothwork-workflow"):
        super().__init__(key)
        self.directory = Path(directory)
        self.path = self.directory / f"{key}.json"

    async def load(self) -> Optional[Workflow]:
        if not self.path.exists():
            return None
        try:
            raw = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e
        return self._decode(raw)

    async def save(self, workflow: Workflow) -> None:
        payload = self._encode(workflow)
        try:
            await asyncio.to_thread(self._write, payload)
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.path}: {e}") from e
        logger.debug(f"Workflow saved to {self.path}")

    def _write(self, payload: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".json.tmp")
        tmp.write_text(payload, encoding="utf-8")
        tmp.replace(self.path)
