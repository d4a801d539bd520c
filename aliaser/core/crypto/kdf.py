"""
Key Derivation Functions
========================

Derives the vault encryption key from the master password.

Implements:
    - Random per-vault salt generation
    - Argon2id raw derivation (memory-hard, deterministic)

The key is independent of the password verification hash: the hash
uses its own salt and parameters (see aliaser.core.auth.argon2_auth),
so a leaked config file never yields the key by itself.
"""

from __future__ import annotations

import secrets
from typing import Final, Optional

from argon2.low_level import Type, hash_secret_raw

from aliaser.core.config import KdfConfig

SALT_SIZE: Final[int] = 32  # 256 bits
KEY_SIZE: Final[int] = 32  # 256 bits
MIN_SALT_SIZE: Final[int] = 16


def generate_salt(length: int = SALT_SIZE) -> bytes:
    """
    Generate a cryptographically random salt.

    Produced once per vault and rotated only on master-password change.
    """
    return secrets.token_bytes(length)


def derive_key(
    password: str,
    salt: bytes,
    params: Optional[KdfConfig] = None,
) -> bytes:
    """
    Derive a 256-bit key from password using Argon2id.

    Args:
        password: Master password
        salt: Vault salt (at least 16 bytes)
        params: Argon2id cost parameters (defaults if None)

    Returns:
        Derived key bytes; same (password, salt, params) always
        yields the same key

    Raises:
        ValueError: If the password is empty or the salt too short
    """
    if not password:
        raise ValueError("Password cannot be empty")
    if len(salt) < MIN_SALT_SIZE:
        raise ValueError(f"Salt must be at least {MIN_SALT_SIZE} bytes")

    params = params or KdfConfig()
    return hash_secret_raw(
        secret=password.encode("utf-8"),
        salt=salt,
        time_cost=params.time_cost,
        memory_cost=params.memory_cost,
        parallelism=params.parallelism,
        hash_len=params.key_length,
        type=Type.ID,
    )
