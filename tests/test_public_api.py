"""
Anonymous public exam detail and its Redis cache
"""
import json

import pytest

from app.utils.cache import cache_service


class FakeRedis:
    """Just enough of the redis client for CacheService"""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value

    def delete(self, key):
        self.store.pop(key, None)


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache_service, "redis_client", fake)
    return fake


def test_public_exam_visible_without_login(client, teacher, make_question, make_exam):
    exam_id = make_exam(teacher, items=[(make_question(teacher), 4)], is_public=True, publish=True)

    r = client.get(f"/api/public/exams/{exam_id}")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["id"] == exam_id
    assert data["total_points"] == 4
    assert data["question_count"] == 1
    assert "author_id" not in data


def test_unpublished_or_private_exams_are_hidden(client, teacher, make_exam):
    draft = make_exam(teacher, is_public=True)
    private = make_exam(teacher, publish=True)

    assert client.get(f"/api/public/exams/{draft}").status_code == 404
    assert client.get(f"/api/public/exams/{private}").status_code == 404
    assert client.get("/api/public/exams/9999").status_code == 404


def test_student_can_see_public_detail_but_not_start_private_exam(client, teacher, student, make_exam):
    public = make_exam(teacher, is_public=True, publish=True)
    private = make_exam(teacher, publish=True)

    assert client.get(f"/api/public/exams/{public}").status_code == 200
    assert client.post(f"/api/exams/{private}/start", headers=student.headers).status_code == 403


def test_public_detail_is_cached(client, fake_redis, teacher, make_exam):
    exam_id = make_exam(teacher, title="Cached", is_public=True, publish=True)

    client.get(f"/api/public/exams/{exam_id}")
    key = cache_service.public_exam_key(exam_id)
    assert json.loads(fake_redis.store[key])["title"] == "Cached"

    # A hit is served from the cache even if the row changed underneath
    cached = json.loads(fake_redis.store[key])
    cached["title"] = "From cache"
    fake_redis.store[key] = json.dumps(cached)
    assert client.get(f"/api/public/exams/{exam_id}").json()["data"]["title"] == "From cache"


def test_close_invalidates_cache(client, fake_redis, teacher, make_exam):
    exam_id = make_exam(teacher, is_public=True, publish=True)
    client.get(f"/api/public/exams/{exam_id}")
    assert cache_service.public_exam_key(exam_id) in fake_redis.store

    client.post(f"/api/exams/{exam_id}/close", headers=teacher.headers)
    assert cache_service.public_exam_key(exam_id) not in fake_redis.store
    assert client.get(f"/api/public/exams/{exam_id}").status_code == 404
