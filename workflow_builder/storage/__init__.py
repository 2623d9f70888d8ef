"""Storage layer for workflow persistence."""

from workflow_builder.storage.base import WorkflowStore
from workflow_builder.storage.factory import create_store
from workflow_builder.storage.file import FileWorkflowStore
from workflow_builder.storage.memory import MemoryWorkflowStore
from workflow_builder.storage.redis.store import RedisWorkflowStore

__all__ = [
    "WorkflowStore",
    "create_store",
    "FileWorkflowStore",
    "MemoryWorkflowStore",
    "RedisWorkflowStore",
]
