"""
Redis-backed workflow store.
"""

import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from workflow_builder.core.errors import PersistenceError
from workflow_builder.core.models import Workflow
from workflow_builder.storage.base import WorkflowStore

logger = logging.getLogger(__name__)


class RedisWorkflowStore(WorkflowStore):
    """
    Keeps the workflow as a JSON string under wf:editor:<key>.

    No TTL: the saved workflow lives until it is overwritten.
    """

    KEY_PREFIX = "wf:editor:"

    def __init__(self, client: redis.Redis, key: str = "smoothwork-workflow"):
        super().__init__(key)
        self.client = client

    @property
    def redis_key(self) -> str:
        return f"{self.KEY_PREFIX}{self.key}"

    async def load(self) -> Optional[Workflow]:
        try:
            raw = await self.client.get(self.redis_key)
        except RedisError as e:
            raise PersistenceError(f"Cannot read {self.redis_key}: {e}") from e

        if raw is None:
            return None
        return self._decode(raw)

    async def save(self, workflow: Workflow) -> None:
        payload = self._encode(workflow)
        try:
            await self.client.set(self.redis_key, payload)
        except RedisError as e:
            raise PersistenceError(f"Cannot write {self.redis_key}: {e}") from e
        logger.debug(f"Workflow saved to {self.redis_key}")
