"""
In-process workflow store.
"""

from typing import Optional

from workflow_builder.core.models import Workflow
from workflow_builder.storage.base import WorkflowStore


class MemoryWorkflowStore(WorkflowStore):
    """
    Keeps the serialized workflow in memory.

    The payload is stored as JSON text so loads go through the same parsing
    path as every other backend.
    """

    def __init__(self, key: str = "smoothwork-workflow", initial: Optional[str] = None):
        super().__init__(key)
        self.payload: Optional[str] = initial
        self.save_count = 0

    async def load(self) -> Optional[Workflow]:
        if self.payload is None:
            return None
        return self._decode(self.payload)

    async def save(self, workflow: Workflow) -> None:
        self.payload = self._encode(workflow)
        self.save_count += 1
