"""
Aliaser Authentication Module
=============================

Master-password verification with Argon2id.

Security Properties:
- Memory-hard password hashing
- Constant-time verification
- Independent of the vault encryption key
"""

from aliaser.core.auth.argon2_auth import (
    Argon2Hasher,
    hash_password,
    verify_password,
)

__all__ = [
    "Argon2Hasher",
    "hash_password",
    "verify_password",
]
