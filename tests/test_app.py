"""
Application wiring: health, error envelope and rate limiting
"""
from app.utils.rate_limiter import rate_limiter


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


def test_unknown_route_uses_error_envelope(client):
    r = client.get("/api/nope")
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Not Found"}


def test_validation_errors_are_bad_requests(client, teacher):
    r = client.post("/api/exams", json={"description": "no title"}, headers=teacher.headers)
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert "title" in r.json()["error"]


def test_non_numeric_id_is_bad_request(client, teacher):
    assert client.get("/api/exams/abc", headers=teacher.headers).status_code == 400


def test_rate_limit(client, monkeypatch):
    monkeypatch.setitem(rate_limiter.windows, "minute", (60, 3))

    codes = [client.get("/").status_code for _ in range(4)]
    assert codes == [200, 200, 200, 429]
    assert client.get("/health").status_code == 200
