"""
Aliaser Cryptography Module
===========================

Provides the vault's symmetric crypto:
- AES-256-GCM authenticated encryption of the whole vault
- Argon2id key derivation from the master password

Security Properties:
- 128-bit authentication tags, checked before plaintext is released
- Fresh random nonce per save
- Memory-hard key derivation
"""

from aliaser.core.crypto.aes_gcm import (
    AES_KEY_SIZE,
    AES_NONCE_SIZE,
    AES_TAG_SIZE,
    CipherEngine,
)
from aliaser.core.crypto.kdf import derive_key, generate_salt

__all__ = [
    "AES_KEY_SIZE",
    "AES_NONCE_SIZE",
    "AES_TAG_SIZE",
    "CipherEngine",
    "derive_key",
    "generate_salt",
]
