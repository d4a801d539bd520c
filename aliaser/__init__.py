"""
Aliaser - Local Encrypted Identity Vault
========================================

A single-user vault of service credentials, encrypted with a key
derived from a master password.

Security Notice:
- Whole vault encrypted with AES-256-GCM, key from Argon2id
- The key is never written to disk and is wiped when a session closes
- Every write is an atomic file replacement
- No secrets are logged
- A lost master password cannot be recovered
"""

from aliaser.core.config import AliaserConfig, PathConfig
from aliaser.core.errors import (
    DecryptionError,
    IdentityExistsError,
    IdentityNotFoundError,
    InvalidMasterPasswordError,
    SerializationError,
    SessionClosedError,
    VaultAlreadyInitializedError,
    VaultError,
    VaultIOError,
    VaultMalformedError,
    VaultNotInitializedError,
)
from aliaser.core.logging import configure_logging, get_secure_logger
from aliaser.core.models.identity import Identity, PersonalInfo, VaultData
from aliaser.core.vault.engine import Vault
from aliaser.core.vault.session import VaultSession
from aliaser.utils.passwords import generate_password

__version__ = "0.1.0"

__all__ = [
    "AliaserConfig",
    "DecryptionError",
    "Identity",
    "IdentityExistsError",
    "IdentityNotFoundError",
    "InvalidMasterPasswordError",
    "PathConfig",
    "PersonalInfo",
    "SerializationError",
    "SessionClosedError",
    "Vault",
    "VaultAlreadyInitializedError",
    "VaultData",
    "VaultError",
    "VaultIOError",
    "VaultMalformedError",
    "VaultNotInitializedError",
    "VaultSession",
    "configure_logging",
    "generate_password",
    "get_secure_logger",
    "__version__",
]
