"""
Tests for the session validator and the session holder.
"""

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from skoolar.core.config import settings
from skoolar.core.roles import Role
from skoolar.core.session import (
    MalformedSessionError,
    SessionHolder,
    SessionStatus,
    check_session,
    parse_session,
    validate,
)


class TestValidate:
    """Tests for validate()."""

    def test_valid_token(self, make_token, now):
        assert validate(make_token(Role.TEACHER), now) is SessionStatus.VALID

    @pytest.mark.parametrize("seconds_past", [0, 1, 3600, 86400 * 30])
    def test_expired_token_is_never_valid(self, make_token, now, seconds_past):
        token = make_token(Role.TEACHER, issued_at=now - timedelta(hours=1), lifetime=timedelta(hours=1))
        assert validate(token, now + timedelta(seconds=seconds_past)) is SessionStatus.EXPIRED

    def test_one_second_before_expiry_is_valid(self, make_token, now):
        token = make_token(Role.TEACHER, issued_at=now - timedelta(hours=1), lifetime=timedelta(hours=1))
        assert validate(token, now - timedelta(seconds=1)) is SessionStatus.VALID

    @pytest.mark.parametrize(
        "token",
        ["", "not-a-token", "a.b.c", "eyJhbGciOiJIUzI1NiJ9.e30."],
    )
    def test_garbage_is_malformed(self, token, now):
        assert validate(token, now) is SessionStatus.MALFORMED

    def test_wrong_signature_is_malformed(self, now):
        token = jwt.encode(
            {"sub": "u1", "role": "teacher", "iat": 0, "exp": 4102444800},
            "some-other-secret",
            algorithm=settings.jwt_algorithm,
        )
        assert validate(token, now) is SessionStatus.MALFORMED

    def test_tampered_payload_is_malformed(self, make_token, now):
        header, _payload, signature = make_token(Role.TEACHER).split(".")
        forged_payload = jwt.encode(
            {"sub": "u1", "role": "platform_operator"}, "x", algorithm="HS256"
        ).split(".")[1]
        assert validate(f"{header}.{forged_payload}.{signature}", now) is SessionStatus.MALFORMED

    def test_unknown_role_is_malformed(self, now):
        token = jwt.encode(
            {"sub": "u1", "role": "janitor", "iat": 0, "exp": 4102444800},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        assert validate(token, now) is SessionStatus.MALFORMED

    def test_missing_expiry_is_malformed(self, now):
        token = jwt.encode(
            {"sub": "u1", "role": "teacher", "iat": 0},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        assert validate(token, now) is SessionStatus.MALFORMED

    def test_refresh_token_type_is_malformed(self, now):
        token = jwt.encode(
            {"sub": "u1", "role": "teacher", "type": "refresh", "iat": 0, "exp": 4102444800},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        assert validate(token, now) is SessionStatus.MALFORMED

    def test_missing_token_type_is_malformed(self, now):
        token = jwt.encode(
            {"sub": "u1", "role": "teacher", "iat": 0, "exp": 4102444800},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        assert validate(token, now) is SessionStatus.MALFORMED


class TestCheckSession:
    """Tests for check_session()."""

    def test_valid_returns_session(self, make_token, now):
        status, session = check_session(make_token(Role.PARENT), now)

        assert status is SessionStatus.VALID
        assert session.role is Role.PARENT

    def test_expired_still_returns_session(self, expired_token, now):
        status, session = check_session(expired_token, now)

        assert status is SessionStatus.EXPIRED
        assert session is not None

    def test_malformed_returns_no_session(self, now):
        assert check_session("a.b.c", now) == (SessionStatus.MALFORMED, None)


class TestParseSession:
    """Tests for parse_session()."""

    def test_claims_are_mapped(self, make_token, now):
        token = make_token(Role.SCHOOL_ADMIN, subject="user-42")

        session = parse_session(token)

        assert session.subject == "user-42"
        assert session.role is Role.SCHOOL_ADMIN
        assert session.email == "user@skoolar.test"
        assert session.name == "Test User"
        assert session.signature == token.rsplit(".", 1)[-1]
        assert session.expires_at - session.issued_at == timedelta(hours=1)
        assert session.expires_at.tzinfo is not None

    def test_does_not_check_expiry(self, make_token):
        token = make_token(
            Role.TEACHER,
            issued_at=datetime(2020, 1, 1, tzinfo=UTC),
            lifetime=timedelta(minutes=1),
        )
        session = parse_session(token)
        assert session.is_expired(datetime(2020, 1, 1, 0, 2, tzinfo=UTC))

    def test_raises_for_garbage(self):
        with pytest.raises(MalformedSessionError):
            parse_session("garbage")


class TestSessionHolder:
    """Tests for the explicit cached-credential holder."""

    def test_starts_empty(self):
        holder = SessionHolder()
        assert holder.token is None
        assert not holder.is_set

    def test_set_and_clear(self):
        holder = SessionHolder()
        holder.set("abc")
        assert holder.is_set
        assert holder.token == "abc"

        holder.clear(reason="expired")
        assert holder.token is None

    def test_clear_when_empty_is_noop(self):
        holder = SessionHolder()
        holder.clear()
        assert not holder.is_set

    def test_rejects_empty_token(self):
        with pytest.raises(ValueError):
            SessionHolder().set("")

    def test_validate_does_not_touch_holder(self, expired_token, now):
        holder = SessionHolder(expired_token)
        assert validate(holder.token, now) is SessionStatus.EXPIRED
        assert holder.token == expired_token
