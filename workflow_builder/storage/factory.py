"""
Builds the configured persistence adapter.
"""

import logging
from typing import Optional

import redis.asyncio as redis

from workflow_builder.config.settings import Settings, StorageBackend
from workflow_builder.storage.base import WorkflowStore
from workflow_builder.storage.file import FileWorkflowStore
from workflow_builder.storage.memory import MemoryWorkflowStore
from workflow_builder.storage.redis.connection import get_redis
from workflow_builder.storage.redis.store import RedisWorkflowStore

logger = logging.getLogger(__name__)


async def create_store(
    settings: Settings,
    redis_client: Optional[redis.Redis] = None,
) -> WorkflowStore:
    """
    Create the store selected by settings.storage.backend.

    Args:
        settings: Application settings
        redis_client: Client to use for the redis backend; the global
            connection is opened when omitted
    """
    backend = settings.storage.backend
    key = settings.storage.key

    if backend == StorageBackend.MEMORY:
        store: WorkflowStore = MemoryWorkflowStore(key=key)
    elif backend == StorageBackend.FILE:
        store = FileWorkflowStore(settings.storage.directory, key=key)
    elif backend == StorageBackend.REDIS:
        client = redis_client or await get_redis()
        store = RedisWorkflowStore(client, key=key)
    else:
        raise ValueError(f"Unsupported storage backend: {backend}")

    logger.info(f"Using {backend.value} workflow store (key={key})")
    return store
