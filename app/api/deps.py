"""
Shared FastAPI dependencies: bearer auth context and pagination
"""
from typing import Optional

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.services.auth_service import AuthContext, resolve_context

bearer = HTTPBearer(auto_error=False)


def get_auth_context(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: Session = Depends(get_db)
) -> AuthContext:
    """Resolve the caller or fail with 401 (500 when the signing secret is missing)"""
    token = creds.credentials if creds else None
    return resolve_context(db, token, settings.JWT_SECRET)


def get_optional_auth_context(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: Session = Depends(get_db)
) -> Optional[AuthContext]:
    """Like get_auth_context, but anonymous callers resolve to None"""
    if not creds:
        return None
    return resolve_context(db, creds.credentials, settings.JWT_SECRET)


class Page(BaseModel):
    limit: int
    offset: int


def pagination(
    limit: Optional[int] = Query(None, description="Page size, capped at MAX_PAGE_SIZE"),
    offset: Optional[int] = Query(0, description="Rows to skip")
) -> Page:
    limit = settings.DEFAULT_PAGE_SIZE if limit is None else limit
    return Page(
        limit=max(1, min(limit, settings.MAX_PAGE_SIZE)),
        offset=max(offset or 0, 0),
    )
