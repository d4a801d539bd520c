"""
AES-256-GCM Authenticated Encryption
====================================

Encrypts the serialized vault as one opaque blob.

Blob layout:
    nonce (12 bytes) || ciphertext || tag (16 bytes)

Security Properties:
    - 256-bit key (128-bit security level)
    - 96-bit random nonce per encryption (NIST recommended)
    - 128-bit authentication tag, verified before any plaintext is returned
    - No associated data

WARNING:
    - Never reuse (key, nonce) pairs
    - Wrong key and tampering raise the same DecryptionError
"""

from __future__ import annotations

import secrets
from typing import Final

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from aliaser.core.errors import DecryptionError

# Constants following NIST recommendations
AES_KEY_SIZE: Final[int] = 32  # 256 bits
AES_NONCE_SIZE: Final[int] = 12  # 96 bits (NIST recommended for GCM)
AES_TAG_SIZE: Final[int] = 16  # 128 bits


class CipherEngine:
    """
    AES-256-GCM authenticated encryption of whole-vault payloads.

    Usage:
        cipher = CipherEngine()
        blob = cipher.encrypt(plaintext, key)
        plaintext = cipher.decrypt(blob, key)

    Security Notes:
        - A fresh nonce is sampled for every call to encrypt(); vault
          rewrites are human-driven, so 96-bit random nonces stay far
          below the birthday bound
        - The caller owns the key and is responsible for wiping it
    """

    __slots__ = ()

    @staticmethod
    def generate_nonce() -> bytes:
        """Generate a cryptographically secure random 12-byte nonce."""
        return secrets.token_bytes(AES_NONCE_SIZE)

    @staticmethod
    def _check_key(key: bytes) -> None:
        if len(key) != AES_KEY_SIZE:
            raise ValueError(f"Key must be exactly {AES_KEY_SIZE} bytes")

    def encrypt(self, plaintext: bytes | bytearray, key: bytes) -> bytes:
        """
        Encrypt plaintext using AES-256-GCM.

        Args:
            plaintext: Data to encrypt (can be empty)
            key: 32-byte key

        Returns:
            nonce || ciphertext || tag

        Raises:
            ValueError: If key is the wrong size
        """
        self._check_key(key)
        nonce = self.generate_nonce()
        return nonce + AESGCM(key).encrypt(nonce, plaintext, None)

    def decrypt(self, blob: bytes, key: bytes) -> bytes:
        """
        Decrypt a blob produced by encrypt(), verifying integrity first.

        Args:
            blob: nonce || ciphertext || tag
            key: 32-byte key

        Returns:
            Decrypted plaintext bytes

        Raises:
            ValueError: If key is the wrong size
            DecryptionError: If the blob is truncated, was tampered with,
                or was encrypted under a different key
        """
        self._check_key(key)
        if len(blob) < AES_NONCE_SIZE + AES_TAG_SIZE:
            raise DecryptionError("Failed to decrypt vault")

        nonce, ciphertext = blob[:AES_NONCE_SIZE], blob[AES_NONCE_SIZE:]
        try:
            return AESGCM(key).decrypt(nonce, ciphertext, None)
        except InvalidTag as exc:
            raise DecryptionError("Failed to decrypt vault") from exc
