"""
TokenService tests: issuing, verification, expiry parsing and header extraction.
"""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from core.exceptions import ConfigurationError, InvalidRoleError
from core.tokens import TokenService, extract_bearer_token, parse_expiry


# ═══════════════════════════════════════════════════════════════
# 1. ISSUE / VERIFY
# ═══════════════════════════════════════════════════════════════
class TestIssueAndVerify:

    def test_admin_token_round_trips_email_and_role(self, token_service):
        payload = token_service.verify(token_service.issue_admin_token("admin@site.com"))
        assert payload.email == "admin@site.com"
        assert payload.role == "admin"

    @pytest.mark.parametrize("role", ["user", "supervisor"])
    def test_role_token_round_trips(self, token_service, role):
        payload = token_service.verify(token_service.issue_token("a@b.com", role))
        assert (payload.email, payload.role) == ("a@b.com", role)

    @pytest.mark.parametrize("role", ["admin", "manager", ""])
    def test_issue_token_rejects_other_roles(self, token_service, role):
        with pytest.raises(InvalidRoleError) as exc_info:
            token_service.issue_token("a@b.com", role)
        assert exc_info.value.message == "Invalid role. Must be 'user' or 'supervisor'"

    def test_token_carries_expiry(self, token_service):
        token = token_service.issue_token("a@b.com", "user")
        decoded = jwt.decode(token, "test-secret", algorithms=["HS256"])
        expected = datetime.now(timezone.utc) + timedelta(hours=24)
        assert abs(decoded["exp"] - expected.timestamp()) < 60

    def test_wrong_secret_is_rejected(self, token_service):
        token = TokenService("other-secret").issue_token("a@b.com", "user")
        assert token_service.verify(token) is None

    def test_expired_token_is_rejected(self):
        service = TokenService("test-secret", expires_in=timedelta(seconds=-10))
        assert service.verify(service.issue_token("a@b.com", "user")) is None

    def test_garbage_token_is_rejected(self, token_service):
        assert token_service.verify("not-a-jwt") is None

    def test_token_without_expiry_is_rejected(self, token_service):
        token = jwt.encode({"email": "a@b.com", "role": "user"}, "test-secret", algorithm="HS256")
        assert token_service.verify(token) is None

    def test_token_without_role_is_rejected(self, token_service):
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
        token = jwt.encode({"email": "a@b.com", "exp": exp}, "test-secret", algorithm="HS256")
        assert token_service.verify(token) is None


# ═══════════════════════════════════════════════════════════════
# 2. CONFIGURATION
# ═══════════════════════════════════════════════════════════════
class TestConfiguration:

    def test_missing_secret_fails_issue(self):
        with pytest.raises(ConfigurationError) as exc_info:
            TokenService("").issue_admin_token("admin@site.com")
        assert exc_info.value.status_code == 500
        assert "JWT_SECRET" in exc_info.value.message

    def test_missing_secret_fails_verify(self, token_service):
        token = token_service.issue_token("a@b.com", "user")
        with pytest.raises(ConfigurationError):
            TokenService("").verify(token)

    def test_from_config_reads_environment(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "env-secret")
        monkeypatch.setenv("JWT_EXPIRY", "30m")
        service = TokenService.from_config()
        assert service.secret == "env-secret"
        assert service.expires_in == timedelta(minutes=30)

    def test_from_config_defaults_to_a_day(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "env-secret")
        monkeypatch.delenv("JWT_EXPIRY", raising=False)
        assert TokenService.from_config().expires_in == timedelta(hours=24)

    @pytest.mark.parametrize("value,expected", [
        ("24h", timedelta(hours=24)),
        ("30m", timedelta(minutes=30)),
        ("7d", timedelta(days=7)),
        ("45s", timedelta(seconds=45)),
        ("3600", timedelta(seconds=3600)),
    ])
    def test_parse_expiry(self, value, expected):
        assert parse_expiry(value) == expected

    @pytest.mark.parametrize("value", ["", "soon", "1w", "-5h"])
    def test_parse_expiry_rejects_garbage(self, value):
        with pytest.raises(ConfigurationError):
            parse_expiry(value)

    @pytest.mark.parametrize("value", ["0", "0h", "00m"])
    def test_parse_expiry_rejects_zero(self, value):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_expiry(value)
        assert "greater than zero" in exc_info.value.message


# ═══════════════════════════════════════════════════════════════
# 3. BEARER HEADER
# ═══════════════════════════════════════════════════════════════
class TestBearerExtraction:

    def test_extracts_token(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Basic abc", "bearer abc", "Bearer a b"])
    def test_malformed_headers_yield_nothing(self, header):
        assert extract_bearer_token(header) is None
