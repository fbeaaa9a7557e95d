"""
Input Validation Utilities

FLOW OVERVIEW
- validate_email(email)
  • RFC-like syntax checks and basic security checks; returns sanitized lowercased value.
- validate_new_password(password)
  • Invitation acceptance rule: at least 6 characters.
- validate_role(role)
  • Role must be one of staff, admin, super-admin.
- require_fields(data, fields, message)
  • Every named field must be non-blank after stripping.
- sanitize_input(input, max_length)
  • Trim, bound length, normalize, and remove null bytes.
"""

import re
from typing import Optional, Iterable, Dict, Any
from dataclasses import dataclass

MIN_PASSWORD_LENGTH = 6


@dataclass
class ValidationResult:
    """Result of validation operation"""
    is_valid: bool
    error_message: Optional[str] = None
    sanitized_value: Optional[str] = None


class InputValidator:
    """Input validation for the JSON endpoints"""

    # RFC 5322 compliant email regex (simplified)
    EMAIL_PATTERN = re.compile(
        r'^[a-zA-Z0-9.!#$%&\'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$'
    )

    XSS_PATTERNS = [
        r'<script[^>]*>.*?</script>',
        r'javascript:',
        r'on\w+\s*=',
        r'<iframe[^>]*>',
        r'data:text/html',
        r'vbscript:',
    ]

    @classmethod
    def validate_email(cls, email: str) -> ValidationResult:
        """
        Validate email address

        Args:
            email: Email address to validate

        Returns:
            ValidationResult with validation status and sanitized value
        """
        if not email or not isinstance(email, str):
            return ValidationResult(False, "Email must be a non-empty string")

        email = email.strip()
        if email == "":
            return ValidationResult(False, "Email cannot be empty")

        # RFC 5321 limits
        if len(email) > 254:
            return ValidationResult(False, "Email address too long (max 254 characters)")

        if not cls.EMAIL_PATTERN.match(email):
            return ValidationResult(False, "Invalid email format")

        local_part, domain = email.split('@')
        if len(local_part) > 64:
            return ValidationResult(False, "Email local part too long (max 64 characters)")

        if local_part.startswith('.') or local_part.endswith('.'):
            return ValidationResult(False, "Email local part cannot start or end with a dot")

        if '..' in local_part or '..' in domain:
            return ValidationResult(False, "Email cannot contain consecutive dots")

        if domain.startswith('.') or domain.endswith('.'):
            return ValidationResult(False, "Domain cannot start or end with a dot")

        if cls._contains_xss(email):
            return ValidationResult(False, "Email contains invalid characters")

        return ValidationResult(True, sanitized_value=email.lower())

    @classmethod
    def validate_new_password(cls, password: str) -> ValidationResult:
        if not password or not isinstance(password, str):
            return ValidationResult(False, "Password is required")

        if len(password) < MIN_PASSWORD_LENGTH:
            return ValidationResult(False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        if len(password) > 128:
            return ValidationResult(False, "Password too long (max 128 characters)")

        return ValidationResult(True, sanitized_value=password)

    @classmethod
    def validate_role(cls, role: str) -> ValidationResult:
        from ..models.profile import ROLES

        if role not in ROLES:
            return ValidationResult(False, f"Role must be one of: {', '.join(ROLES)}")
        return ValidationResult(True, sanitized_value=role)

    @classmethod
    def require_fields(cls, data: Dict[str, Any], fields: Iterable[str],
                       message: str = 'Missing required fields') -> ValidationResult:
        """Every named field must be a non-blank string (after stripping)"""
        if not isinstance(data, dict):
            return ValidationResult(False, message)
        for field in fields:
            value = data.get(field)
            if value is None or not str(value).strip():
                return ValidationResult(False, message)
        return ValidationResult(True)

    @classmethod
    def sanitize_input(cls, input_string: str, max_length: int = 1000) -> str:
        """
        Sanitize user input

        Args:
            input_string: Input string to sanitize
            max_length: Maximum allowed length

        Returns:
            Sanitized string
        """
        if not input_string:
            return ""

        sanitized = str(input_string).strip()

        if len(sanitized) > max_length:
            sanitized = sanitized[:max_length]

        sanitized = sanitized.replace('\x00', '')
        sanitized = sanitized.replace('\r\n', '\n').replace('\r', '\n')

        return sanitized

    @classmethod
    def _contains_xss(cls, text: str) -> bool:
        """Check if text contains XSS patterns"""
        text_lower = text.lower()
        for pattern in cls.XSS_PATTERNS:
            if re.search(pattern, text_lower, re.IGNORECASE):
                return True
        return False


# Convenience functions for common validations
def validate_email(email: str) -> ValidationResult:
    """Validate email address"""
    return InputValidator.validate_email(email)


def validate_new_password(password: str) -> ValidationResult:
    return InputValidator.validate_new_password(password)


def validate_role(role: str) -> ValidationResult:
    return InputValidator.validate_role(role)


def require_fields(data, fields, message='Missing required fields') -> ValidationResult:
    return InputValidator.require_fields(data, fields, message)


def sanitize_input(input_string: str, max_length: int = 1000) -> str:
    """Sanitize user input"""
    return InputValidator.sanitize_input(input_string, max_length)
