"""
Persistence adapter contract for the edited workflow.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from workflow_builder.core.errors import PersistenceError, WorkflowParseError
from workflow_builder.core.models import Workflow
from workflow_builder.core.serialization import export_workflow, parse_workflow

logger = logging.getLogger(__name__)


class WorkflowStore(ABC):
    """
    Loads and saves a single workflow under a fixed storage key.
    """

    def __init__(self, key: str):
        self.key = key

    @abstractmethod
    async def load(self) -> Optional[Workflow]:
        """
        Load the saved workflow.

        Returns:
            The workflow, or None if nothing has been saved yet

        Raises:
            PersistenceError: If the stored payload cannot be read or parsed
        """

    @abstractmethod
    async def save(self, workflow: Workflow) -> None:
        """
        Save the workflow, replacing any previous version.

        Raises:
            PersistenceError: If the workflow cannot be written
        """

    async def close(self) -> None:
        """Release any resources held by the store."""

    def _encode(self, workflow: Workflow) -> str:
        try:
            return export_workflow(workflow)
        except (ValueError, TypeError) as e:
            raise PersistenceError(f"Cannot serialize workflow '{self.key}': {e}") from e

    def _decode(self, raw: str | bytes) -> Workflow:
        try:
            return parse_workflow(raw)
        except WorkflowParseError as e:
            raise PersistenceError(f"Stored workflow '{self.key}' is corrupt: {e}") from e
