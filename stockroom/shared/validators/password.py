"""Password validation functions."""

from collections.abc import Callable

PASSWORD_MIN_LENGTH = 8
# Upper bound on the input passed to Argon2
PASSWORD_MAX_LENGTH = 128

CHARACTER_CLASSES: tuple[tuple[Callable[[str], bool], str], ...] = (
    (str.isupper, "an uppercase letter"),
    (str.islower, "a lowercase letter"),
    (str.isdigit, "a digit"),
)


def validate_password_strength(password: str) -> str:
    """Validate a new password for user registration and password changes.

    A password needs 8 to 128 characters including an uppercase letter, a
    lowercase letter and a digit. Every missing character class is reported
    in one message.

    Raises:
        ValueError: If password doesn't meet strength requirements

    Examples:
        >>> validate_password_strength("Warehouse42")
        'Warehouse42'
        >>> validate_password_strength("warehouse")
        Traceback (most recent call last):
        ...
        ValueError: Password must contain an uppercase letter, a digit

    """
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password) > PASSWORD_MAX_LENGTH:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_LENGTH} characters")

    missing = [label for check, label in CHARACTER_CLASSES if not any(check(c) for c in password)]
    if missing:
        raise ValueError(f"Password must contain {', '.join(missing)}")
    return password
