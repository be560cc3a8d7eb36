"""
ApiErrorLog model - persisted record of 5xx responses
"""
from sqlalchemy import Column, Integer, String, Text, DateTime

from app.database import Base
from app.utils.clock import utcnow


class ApiErrorLog(Base):
    __tablename__ = "api_error_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    method = Column(String(10))
    url = Column(Text)
    status = Column(Integer)
    user_agent = Column(Text)
    ip = Column(String(64))
    referer = Column(Text)
    error_message = Column(Text)
    error_stack = Column(Text)

    def __repr__(self):
        return f"<ApiErrorLog(id={self.id}, status={self.status}, url={self.url})>"
