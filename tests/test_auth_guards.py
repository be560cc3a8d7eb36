"""
Token handling and the pure guard helpers
"""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app.exceptions import (
    Forbidden, GradeMismatch, PaymentRequired, ServerConfig, Unauthorized
)
from app.models import Role
from app.services.auth_service import (
    AuthContext, create_token, decode_token, ensure_grade, ensure_plan,
    hash_password, require_role, verify_password
)

SECRET = "unit-test-secret"


def make_ctx(role=Role.STUDENT, plan="free", grade_level=None):
    return AuthContext(
        user_id=1, username="u", email="u@example.com",
        role=role, plan=plan, grade_level=grade_level,
    )


def test_token_round_trip_keeps_identity():
    token = create_token(42, "alice", "alice@example.com", SECRET)
    payload = decode_token(token, SECRET)

    assert payload["sub"] == "42"
    assert payload["username"] == "alice"


def test_token_signed_with_other_secret_is_rejected():
    token = create_token(42, "alice", "alice@example.com", "another-secret")
    with pytest.raises(Unauthorized):
        decode_token(token, SECRET)


def test_expired_token_is_rejected():
    past = datetime.now(timezone.utc) - timedelta(days=1)
    token = jwt.encode({"sub": "1", "exp": int(past.timestamp())}, SECRET, algorithm="HS256")
    with pytest.raises(Unauthorized):
        decode_token(token, SECRET)


def test_missing_token_is_unauthorized():
    with pytest.raises(Unauthorized):
        decode_token(None, SECRET)


def test_missing_secret_is_a_server_config_error():
    with pytest.raises(ServerConfig):
        create_token(1, "u", "u@example.com", "")
    with pytest.raises(ServerConfig):
        decode_token("a.b.c", "")


def test_password_hashing():
    hashed = hash_password("secret123", rounds=4)
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret123", "not-a-bcrypt-hash")


def test_require_role():
    require_role(make_ctx(Role.TEACHER), (Role.TEACHER, Role.ADMIN))
    with pytest.raises(Forbidden):
        require_role(make_ctx(Role.STUDENT), (Role.TEACHER, Role.ADMIN))


def test_ensure_plan():
    ensure_plan(make_ctx(plan="free"), None)
    ensure_plan(make_ctx(plan="pro"), "pro")
    with pytest.raises(PaymentRequired):
        ensure_plan(make_ctx(plan="free"), "pro")


def test_ensure_plan_has_no_admin_bypass():
    with pytest.raises(PaymentRequired):
        ensure_plan(make_ctx(Role.ADMIN, plan="free"), "pro")


def test_ensure_grade():
    ensure_grade(make_ctx(grade_level=None), "")
    ensure_grade(make_ctx(grade_level="g10"), "g10")
    with pytest.raises(GradeMismatch):
        ensure_grade(make_ctx(grade_level="g9"), "g10")
    with pytest.raises(GradeMismatch):
        ensure_grade(make_ctx(grade_level=None), "g10")


def test_error_kinds_map_to_status_codes():
    assert Unauthorized().status_code == 401
    assert PaymentRequired().status_code == 402
    assert GradeMismatch().status_code == 403
    assert ServerConfig().status_code == 500
