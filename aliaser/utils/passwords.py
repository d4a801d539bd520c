"""
Password Generation
===================

Random passwords for new or rotated identities.
"""

from __future__ import annotations

import secrets
import string
from typing import Final

PASSWORD_CHARSET: Final[str] = (
    string.ascii_uppercase
    + string.ascii_lowercase
    + string.digits
    + "!@#$%^&*()_+-=[]{}|;:,.<>?"
)
DEFAULT_PASSWORD_LENGTH: Final[int] = 20
MIN_PASSWORD_LENGTH: Final[int] = 8


def generate_password(length: int = DEFAULT_PASSWORD_LENGTH, charset: str = PASSWORD_CHARSET) -> str:
    """
    Generate a random password from the OS CSPRNG.

    Raises:
        ValueError: If length is below 8 or the charset is empty
    """
    if length < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password length must be at least {MIN_PASSWORD_LENGTH}")
    if not charset:
        raise ValueError("Charset cannot be empty")
    return "".join(secrets.choice(charset) for _ in range(length))
