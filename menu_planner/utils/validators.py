"""
Input validation utilities
"""
import re

# At least one lowercase, uppercase, digit and special character, 8+ chars overall
PASSWORD_PATTERN = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&#])[A-Za-z\d@$!%*?&#]{8,}$"
)

PASSWORD_REQUIREMENTS = (
    "Password must be at least 8 characters long and include an uppercase letter, "
    "a lowercase letter, a number and one of @$!%*?&#."
)


def normalize_username(raw) -> str:
    """Trim and lowercase a username. None becomes an empty string."""
    return str(raw or "").strip().lower()


def is_strong_password(password: str) -> bool:
    return bool(PASSWORD_PATTERN.match(password or ""))


def validate_rating(value: int) -> int:
    """Validate a menu rating is on the 1-5 scale"""
    if value < 1 or value > 5:
        raise ValueError("Rating must be between 1 and 5")
    return value
