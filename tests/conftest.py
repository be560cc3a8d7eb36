"""
Shared fixtures: in-memory database, test client and per-role accounts
"""
import os

# Must be set before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["REDIS_URL"] = "redis://localhost:6390/0"
os.environ["LOG_LEVEL"] = "WARNING"

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import pytest
from fastapi.testclient import TestClient

from app import models  # noqa: F401
from app.config import settings
from app.database import Base, SessionLocal, engine
from app.main import app
from app.models import Role, User, UserProfile, UserRole
from app.services.auth_service import create_token, hash_password
from app.utils.rate_limiter import rate_limiter


@dataclass
class Account:
    id: int
    username: str
    headers: Dict[str, str]


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    rate_limiter.reset()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_account(db):
    """Create a user with the given role/profile and return bearer headers for it"""

    def _make(username: str, role: Role = Role.STUDENT, plan: str = "free",
              grade_level: Optional[str] = None) -> Account:
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=hash_password("secret123"),
            display_name=username,
        )
        db.add(user)
        db.flush()
        db.add(UserRole(user_id=user.id, role=role.value))
        db.add(UserProfile(user_id=user.id, plan=plan, grade_level=grade_level))
        db.commit()

        token = create_token(user.id, user.username, user.email, settings.JWT_SECRET)
        return Account(id=user.id, username=username, headers={"Authorization": f"Bearer {token}"})

    return _make


@pytest.fixture
def teacher(make_account):
    return make_account("teacher", Role.TEACHER)


@pytest.fixture
def admin(make_account):
    return make_account("admin", Role.ADMIN)


@pytest.fixture
def student(make_account):
    return make_account("student")


@pytest.fixture
def make_question(client):
    def _make(account: Account, qtype: str = "single_choice", answer_key="A", content=None) -> int:
        payload = {
            "type": qtype,
            "content_json": content or {"stem": f"{qtype} question", "options": ["A", "B", "C", "D"]},
            "answer_key_json": answer_key,
        }
        r = client.post("/api/questions", json=payload, headers=account.headers)
        assert r.status_code == 201, r.text
        return r.json()["data"]["id"]

    return _make


def window(hours_before: float = 1, hours_after: float = 1) -> Dict[str, str]:
    now = datetime.now(timezone.utc)
    return {
        "start_at": (now - timedelta(hours=hours_before)).isoformat(),
        "end_at": (now + timedelta(hours=hours_after)).isoformat(),
    }


@pytest.fixture
def make_exam(client):
    """Create an exam with the given (question_id, points) items, optionally published"""

    def _make(account: Account, items=(), publish: bool = False, publish_window=None, **fields) -> int:
        body = {"title": fields.pop("title", "Midterm"), **fields}
        r = client.post("/api/exams", json=body, headers=account.headers)
        assert r.status_code == 201, r.text
        exam_id = r.json()["data"]["id"]

        if items:
            bulk = [
                {"question_id": qid, "order_index": i, "points": points}
                for i, (qid, points) in enumerate(items)
            ]
            r = client.post(f"/api/exams/{exam_id}/questions/bulk", json={"items": bulk}, headers=account.headers)
            assert r.status_code == 200, r.text

        if publish:
            r = client.post(
                f"/api/exams/{exam_id}/publish",
                json=publish_window or window(),
                headers=account.headers,
            )
            assert r.status_code == 200, r.text

        return exam_id

    return _make


@pytest.fixture
def assign(client):
    def _assign(account: Account, exam_id: int, *students: Account) -> None:
        r = client.post(
            f"/api/exams/{exam_id}/assign",
            json={"user_ids": [s.id for s in students]},
            headers=account.headers,
        )
        assert r.status_code == 200, r.text

    return _assign


@pytest.fixture
def exam_window():
    return window
