"""Redis storage backend."""

from workflow_builder.storage.redis.connection import close_redis, get_redis
from workflow_builder.storage.redis.store import RedisWorkflowStore

__all__ = ["RedisWorkflowStore", "get_redis", "close_redis"]
