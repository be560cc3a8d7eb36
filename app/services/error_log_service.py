"""
Best-effort persistence of 5xx responses to api_error_logs
"""
import logging
import traceback
from typing import Optional

from fastapi import Request

from app.database import SessionLocal
from app.models import ApiErrorLog

logger = logging.getLogger(__name__)


class ErrorLogService:
    """Records server errors; a failure to record is logged and swallowed"""

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def log_5xx(self, request: Request, status: int, error: Optional[BaseException] = None) -> None:
        headers = request.headers
        ip = headers.get("x-forwarded-for") or (request.client.host if request.client else None)
        message = str(error) if error else None
        stack = (
            "".join(traceback.format_exception(type(error), error, error.__traceback__))
            if error else None
        )

        logger.error(
            f"[5xx] {request.method} {request.url.path} - Status: {status} - "
            f"ip={ip} ua={headers.get('user-agent')} referer={headers.get('referer')} - {message}"
        )

        db = self.session_factory()
        try:
            db.add(ApiErrorLog(
                method=request.method,
                url=str(request.url),
                status=status,
                user_agent=headers.get("user-agent"),
                ip=ip,
                referer=headers.get("referer"),
                error_message=message,
                error_stack=stack,
            ))
            db.commit()
        except Exception as e:
            db.rollback()
            logger.warning(f"Failed to persist api error log: {str(e)}")
        finally:
            db.close()


# Global instance
error_log_service = ErrorLogService()
