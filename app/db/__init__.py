"""Database module - MongoDB and Redis connections."""

from app.db.mongodb import get_gridfs_bucket, get_mongodb, mongodb_client
from app.db.redis import get_redis, redis_client

__all__ = [
    "get_gridfs_bucket",
    "get_mongodb",
    "mongodb_client",
    "get_redis",
    "redis_client",
]
