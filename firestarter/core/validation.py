"""Input validation for account and transaction parameters."""
import math
import re
from dataclasses import dataclass
from numbers import Real
from typing import Any, Optional

from .exceptions import ValidationError


USERNAME_MIN_LENGTH = 8
PASSWORD_MIN_LENGTH = 8

_USERNAME_PATTERN = re.compile(r'^[A-Za-z0-9_]+$')


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validation check."""
    valid: bool
    error: Optional[str] = None


def validate_username(username: Any) -> ValidationResult:
    """Usernames need 8+ characters from letters, digits and underscore."""
    if not username or not isinstance(username, str):
        return ValidationResult(False, 'Username is required')

    if len(username) < USERNAME_MIN_LENGTH:
        return ValidationResult(False, f'Username must be at least {USERNAME_MIN_LENGTH} characters')

    if not _USERNAME_PATTERN.match(username):
        return ValidationResult(False, 'Username can only contain letters, numbers, and underscores')

    return ValidationResult(True)


def validate_password(password: Any, strict: bool = False) -> ValidationResult:
    """
    Validate a password.

    The API only requires 8+ characters. With ``strict`` the password must
    also contain an uppercase letter, a lowercase letter, a digit and a symbol.
    """
    if not password or not isinstance(password, str):
        return ValidationResult(False, 'Password is required')

    if len(password) < PASSWORD_MIN_LENGTH:
        return ValidationResult(False, f'Password must be at least {PASSWORD_MIN_LENGTH} characters')

    if strict:
        if not re.search(r'[A-Z]', password):
            return ValidationResult(False, 'Password must contain at least one uppercase letter')
        if not re.search(r'[a-z]', password):
            return ValidationResult(False, 'Password must contain at least one lowercase letter')
        if not re.search(r'[0-9]', password):
            return ValidationResult(False, 'Password must contain at least one number')
        if not re.search(r'[^A-Za-z0-9]', password):
            return ValidationResult(False, 'Password must contain at least one special character')

    return ValidationResult(True)


def validate_amount(amount: Any) -> ValidationResult:
    """Amounts must be finite real numbers greater than zero."""
    if isinstance(amount, bool) or not isinstance(amount, Real) or math.isnan(amount):
        return ValidationResult(False, 'Amount must be a valid number')

    if math.isinf(amount):
        return ValidationResult(False, 'Amount must be finite')

    if amount <= 0:
        return ValidationResult(False, 'Amount must be greater than 0')

    return ValidationResult(True)


def validate_file_name(file_name: Any) -> ValidationResult:
    if not file_name or not isinstance(file_name, str) or not file_name.strip():
        return ValidationResult(False, 'File name is required')
    return ValidationResult(True)


def _ensure(result: ValidationResult) -> None:
    if not result.valid:
        raise ValidationError(result.error or 'Invalid input')


def assert_valid_username(username: Any) -> None:
    """Raise ValidationError unless ``username`` is valid."""
    _ensure(validate_username(username))


def assert_valid_password(password: Any, strict: bool = False) -> None:
    """Raise ValidationError unless ``password`` is valid."""
    _ensure(validate_password(password, strict))


def assert_valid_amount(amount: Any) -> None:
    """Raise ValidationError unless ``amount`` is a positive number."""
    _ensure(validate_amount(amount))


def assert_valid_file_name(file_name: Any) -> None:
    _ensure(validate_file_name(file_name))
