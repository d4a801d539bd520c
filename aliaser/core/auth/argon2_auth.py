"""
Argon2id Password Hashing
=========================

Master-password verification hash, stored in the vault config file.

Security Properties:
- Memory-hard (resistant to GPU/ASIC attacks)
- Own random salt, embedded in the encoded hash
- Parameters distinct from the key-derivation parameters
- Constant-time verification (done by argon2-cffi)

The encoded hash gates unlocking only. It is never used to
derive the encryption key.

References:
- RFC 9106: Argon2 Memory-Hard Function
- OWASP Password Storage Cheat Sheet
"""

from __future__ import annotations

from typing import Optional

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError

from aliaser.core.config import HasherConfig


class Argon2Hasher:
    """
    Argon2id password hasher with secure defaults.

    Usage:
        hasher = Argon2Hasher()

        encoded = hasher.hash("master password")
        store(encoded)

        is_valid = hasher.verify("master password", encoded)
    """

    __slots__ = ("_config", "_hasher")

    def __init__(self, config: Optional[HasherConfig] = None) -> None:
        self._config = config or HasherConfig()
        self._hasher = PasswordHasher(
            time_cost=self._config.time_cost,
            memory_cost=self._config.memory_cost,
            parallelism=self._config.parallelism,
            hash_len=self._config.hash_length,
            salt_len=self._config.salt_length,
            type=Type.ID,
        )

    def hash(self, password: str) -> str:
        """
        Hash a password using Argon2id.

        Returns:
            Encoded hash string ($argon2id$v=19$m=...,t=...,p=...$salt$hash)

        Raises:
            ValueError: If the password is empty
        """
        if not password:
            raise ValueError("Password cannot be empty")
        return self._hasher.hash(password)

    def verify(self, password: str, encoded: str) -> bool:
        """
        Verify a password against an encoded hash.

        The parameters embedded in ``encoded`` are used, so hashes made
        with other settings still verify.

        Returns:
            True if password matches; False on mismatch or malformed hash
        """
        if not password or not encoded:
            return False

        try:
            return self._hasher.verify(encoded, password)
        except (VerificationError, InvalidHashError):
            return False

    def needs_rehash(self, encoded: str) -> bool:
        """Check if a hash was made with parameters other than the current ones."""
        try:
            return self._hasher.check_needs_rehash(encoded)
        except InvalidHashError:
            return True


def hash_password(password: str, config: Optional[HasherConfig] = None) -> str:
    """Hash a password using Argon2id; returns the encoded string for storage."""
    return Argon2Hasher(config).hash(password)


def verify_password(password: str, encoded: str) -> bool:
    """Verify a password against a stored encoded hash."""
    return Argon2Hasher().verify(password, encoded)
