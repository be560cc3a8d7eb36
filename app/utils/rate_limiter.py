"""
Per-client rate limiting for API endpoints
"""
import time
from collections import defaultdict
from fastapi import Request, HTTPException
from typing import Dict, List
import logging

from app.config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    In-memory sliding-window limiter keyed by bearer token or client ip
    Production: Use Redis for distributed rate limiting
    """

    def __init__(self, requests_per_minute: int = 60, requests_per_hour: int = 1000):
        self.windows = {
            "minute": (60, requests_per_minute),
            "hour": (3600, requests_per_hour),
        }
        # {window_name: {client_id: [timestamps]}}
        self.trackers: Dict[str, Dict[str, List[float]]] = {
            name: defaultdict(list) for name in self.windows
        }

    def _get_client_id(self, request: Request) -> str:
        """Authenticated callers are tracked by token, anonymous ones by ip"""
        auth = request.headers.get("authorization", "")
        if auth.lower().startswith("bearer "):
            return f"token:{auth[7:][-32:]}"

        return request.client.host if request.client else "unknown"

    def _prune(self, tracker: Dict[str, List[float]], window_seconds: int, now: float):
        cutoff = now - window_seconds
        for client_id in list(tracker.keys()):
            tracker[client_id] = [ts for ts in tracker[client_id] if ts > cutoff]
            if not tracker[client_id]:
                del tracker[client_id]

    async def check_rate_limit(self, request: Request) -> None:
        """
        Record the request or reject it

        Raises:
            HTTPException: 429 if any window is exhausted
        """
        client_id = self._get_client_id(request)
        now = time.time()

        for name, (window_seconds, limit) in self.windows.items():
            tracker = self.trackers[name]
            self._prune(tracker, window_seconds, now)
            if len(tracker[client_id]) >= limit:
                logger.warning(f"Rate limit exceeded ({name}): {client_id}")
                raise HTTPException(
                    status_code=429,
                    detail=f"Too many requests. Limit: {limit} requests per {name}",
                )

        for name in self.windows:
            self.trackers[name][client_id].append(now)

    def reset(self) -> None:
        for tracker in self.trackers.values():
            tracker.clear()


# Global instance
rate_limiter = RateLimiter(
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR
)
