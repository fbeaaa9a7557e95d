"""
Tests for Input Validation Utilities
"""

from carehub.utils.validators import (
    validate_email, validate_new_password, validate_role, require_fields, sanitize_input
)


class TestEmailValidation:
    """Test email validation"""

    def test_valid_emails(self):
        for email in ["test@example.com", "user.name@domain.co.uk", "user+tag@example.org", "a@b.c"]:
            result = validate_email(email)
            assert result.is_valid, f"Email '{email}' should be valid: {result.error_message}"
            assert result.sanitized_value == email.lower()

    def test_invalid_emails(self):
        for email in ["", "   ", "invalid-email", "@example.com", "user@", "user@example..com"]:
            result = validate_email(email)
            assert not result.is_valid, f"Email '{email}' should be invalid"
            assert result.error_message is not None

    def test_email_is_trimmed_and_lowercased(self):
        result = validate_email("  Nurse@Example.COM ")
        assert result.is_valid
        assert result.sanitized_value == "nurse@example.com"

    def test_email_with_script_rejected(self):
        assert not validate_email("<script>alert(1)</script>@example.com").is_valid


class TestPasswordValidation:

    def test_minimum_length(self):
        assert not validate_new_password("12345").is_valid
        assert validate_new_password("123456").is_valid

    def test_missing_password(self):
        result = validate_new_password(None)
        assert not result.is_valid
        assert result.error_message == "Password is required"

    def test_too_long(self):
        assert not validate_new_password("x" * 129).is_valid


class TestRoleValidation:

    def test_known_roles(self):
        for role in ('staff', 'admin', 'super-admin'):
            assert validate_role(role).is_valid

    def test_unknown_role(self):
        result = validate_role('owner')
        assert not result.is_valid
        assert 'staff' in result.error_message


class TestRequireFields:

    def test_all_present(self):
        assert require_fields({'a': 'x', 'b': 'y'}, ('a', 'b')).is_valid

    def test_blank_after_strip_is_missing(self):
        result = require_fields({'a': 'x', 'b': '   '}, ('a', 'b'), 'Please fill out all fields.')
        assert not result.is_valid
        assert result.error_message == 'Please fill out all fields.'

    def test_non_dict_payload(self):
        assert not require_fields(None, ('a',)).is_valid


class TestSanitizeInput:

    def test_trims_and_bounds(self):
        assert sanitize_input("  hello  ") == "hello"
        assert sanitize_input("abcdef", max_length=3) == "abc"

    def test_removes_null_bytes_and_normalizes_newlines(self):
        assert sanitize_input("a\x00b\r\nc") == "ab\nc"

    def test_empty(self):
        assert sanitize_input(None) == ""
