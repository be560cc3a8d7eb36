"""
Redis cache for anonymous public exam reads
"""
import redis
import json
import logging
from typing import Optional, Any
from app.config import settings

logger = logging.getLogger(__name__)


class CacheService:
    """Redis-backed JSON cache; every call is a no-op when Redis is unavailable"""

    def __init__(self, url: str = None):
        try:
            self.redis_client = redis.from_url(
                url or settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5
            )
            self.redis_client.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning(f"Redis connection failed: {str(e)}. Public exam caching disabled.")
            self.redis_client = None

    @staticmethod
    def public_exam_key(exam_id: int) -> str:
        return f"public_exam:{exam_id}"

    def get(self, key: str) -> Optional[Any]:
        """Decoded JSON value, or None on a miss or any Redis error"""
        if not self.redis_client:
            return None

        try:
            raw = self.redis_client.get(key)
        except redis.RedisError as e:
            logger.error(f"Cache get failed for {key}: {str(e)}")
            return None

        logger.debug(f"Cache {'hit' if raw else 'miss'}: {key}")
        return json.loads(raw) if raw else None

    def set(self, key: str, value: Any, ttl: int = None) -> bool:
        """
        Store a JSON-serializable value

        Args:
            ttl: seconds to live, PUBLIC_EXAM_CACHE_TTL when omitted
        """
        if not self.redis_client:
            return False

        ttl = ttl or settings.PUBLIC_EXAM_CACHE_TTL
        try:
            self.redis_client.setex(key, ttl, json.dumps(value))
        except redis.RedisError as e:
            logger.error(f"Cache set failed for {key}: {str(e)}")
            return False
        return True

    def delete(self, key: str) -> bool:
        if not self.redis_client:
            return False

        try:
            self.redis_client.delete(key)
        except redis.RedisError as e:
            logger.error(f"Cache delete failed for {key}: {str(e)}")
            return False
        return True

    def invalidate_exam(self, exam_id: int) -> bool:
        """Drop the cached public view of an exam after any change to it"""
        return self.delete(self.public_exam_key(exam_id))


# Global instance
cache_service = CacheService()
