"""
Input validation for registration and login payloads.

Each validator returns a list of human-readable errors (empty when valid).
"""

import re
from typing import List, Optional

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6
# bcrypt only uses the first 72 bytes
MAX_PASSWORD_BYTES = 72
MAX_USERNAME_LENGTH = 50
MAX_EMAIL_LENGTH = 100
MAX_FULL_NAME_LENGTH = 100


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and len(email) <= MAX_EMAIL_LENGTH and EMAIL_RE.match(email) is not None


def validate_registration(
    username: Optional[str],
    email: Optional[str],
    password: Optional[str],
    full_name: Optional[str],
) -> List[str]:
    if not all(v and v.strip() for v in (username, email, password, full_name)):
        return ["All fields are required"]

    errors = []
    if len(username.strip()) > MAX_USERNAME_LENGTH:
        errors.append(f"Username must be at most {MAX_USERNAME_LENGTH} characters")
    if not is_valid_email(email.strip()):
        errors.append("Invalid email format")
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    elif len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        errors.append(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    if len(full_name.strip()) > MAX_FULL_NAME_LENGTH:
        errors.append(f"Full name must be at most {MAX_FULL_NAME_LENGTH} characters")
    return errors


def validate_login(username: Optional[str], password: Optional[str]) -> List[str]:
    if not username or not username.strip() or not password:
        return ["Username and password are required"]
    return []
