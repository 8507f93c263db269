"""Tests for sensitive data masking."""

import pytest

from schoolportal.logutils.masking import (
    MASK,
    is_sensitive_key,
    mask_dict,
    mask_sensitive_string,
)

pytestmark = pytest.mark.unit


class TestMaskSensitiveString:
    """Tests for mask_sensitive_string function."""

    def test_empty_string(self):
        """Empty string should return empty string."""
        assert mask_sensitive_string("") == ""

    def test_no_sensitive_data(self):
        """String without sensitive data should remain unchanged."""
        text = "Grade recorded for section 2"
        assert mask_sensitive_string(text) == text

    def test_password_in_json(self):
        """Password in a login body should be masked."""
        result = mask_sensitive_string('{"email": "x", "password": "student123"}')
        assert "student123" not in result
        assert MASK in result

    def test_password_hash(self):
        result = mask_sensitive_string("password_hash=pbkdf2_sha256$1000$ab$cd")
        assert "pbkdf2_sha256$1000" not in result

    def test_bearer_token(self):
        """Bearer tokens should be masked."""
        result = mask_sensitive_string("Authorization: Bearer 3f9a0c1d2e")
        assert "3f9a0c1d2e" not in result
        assert "Bearer" in result

    def test_session_token(self):
        result = mask_sensitive_string("session_token=abc123def")
        assert "abc123def" not in result

    def test_email_local_part(self):
        """Only the first two characters of the local part survive."""
        result = mask_sensitive_string("Login rejected for student@school.edu")
        assert "student@" not in result
        assert "st***@school.edu" in result


class TestIsSensitiveKey:
    """Tests for is_sensitive_key."""

    @pytest.mark.parametrize("key", ["password", "Authorization", "session_token", "client_secret"])
    def test_sensitive(self, key):
        assert is_sensitive_key(key)

    @pytest.mark.parametrize("key", ["grade_id", "user_id", "section"])
    def test_not_sensitive(self, key):
        assert not is_sensitive_key(key)


class TestMaskDict:
    """Tests for mask_dict."""

    def test_masks_sensitive_keys(self):
        result = mask_dict({"email": "prof@school.edu", "password": "prof123", "user_id": 2})
        assert result["password"] == MASK
        assert result["user_id"] == 2
        assert result["email"] == "pr***@school.edu"

    def test_nested(self):
        result = mask_dict({"request": {"token": "abc", "path": "/api/login"}})
        assert result["request"]["token"] == MASK
        assert result["request"]["path"] == "/api/login"

    def test_list_of_dicts(self):
        result = mask_dict({"users": [{"password": "x"}, {"name": "Besa"}]})
        assert result["users"][0]["password"] == MASK
        assert result["users"][1]["name"] == "Besa"

    def test_input_untouched(self):
        data = {"password": "secret"}
        mask_dict(data)
        assert data["password"] == "secret"
