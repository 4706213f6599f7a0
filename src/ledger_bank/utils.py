"""
Small shared helpers.
"""

import secrets
import string
from datetime import datetime, timezone

ACCOUNT_PREFIX = "ACC"
ACCOUNT_SUFFIX_LEN = 9
_ACCOUNT_ALPHABET = string.ascii_uppercase + string.digits


def utcnow() -> datetime:
    """
    Naive UTC timestamp, matching how DateTime columns are stored.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_account_number() -> str:
    # e.g. ACC7Q2K9XZ0B
    suffix = "".join(secrets.choice(_ACCOUNT_ALPHABET) for _ in range(ACCOUNT_SUFFIX_LEN))
    return f"{ACCOUNT_PREFIX}{suffix}"
