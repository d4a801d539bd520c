"""
Encrypted Vault Store
=====================

Persists the record collection as one AES-256-GCM blob:

    nonce (12) || ciphertext || tag (16)

where the plaintext is the JSON form of VaultData. The whole
collection is decrypted on load and re-encrypted with a fresh
nonce on every save, never partially.

Security Properties:
- Integrity verified before any record is parsed
- Atomic replacement (temp file + fsync + rename)
- Serialized plaintext buffers wiped after use
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from aliaser.core.crypto.aes_gcm import CipherEngine
from aliaser.core.errors import SerializationError, VaultIOError, VaultMalformedError
from aliaser.core.memory.zeroization import ZeroizeContext
from aliaser.core.models.identity import VaultData
from aliaser.core.storage import atomic


class VaultStore:
    """
    Load/save of the encrypted vault file.

    Usage:
        store = VaultStore(vault_path)
        data = store.load(key)
        store.save(data.with_identity(identity), key)

    The store never holds the key; callers pass it per call.
    """

    __slots__ = ("_path", "_cipher", "_log")

    def __init__(self, path: Path | str, cipher: Optional[CipherEngine] = None) -> None:
        self._path = Path(path)
        self._cipher = cipher or CipherEngine()
        self._log = logging.getLogger("aliaser.storage")

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    # Raw blob access

    def read_raw(self, path: Optional[Path] = None) -> bytes:
        """Read the encrypted blob from ``path`` (default: the vault file)."""
        source = Path(path) if path is not None else self._path
        try:
            return source.read_bytes()
        except OSError as exc:
            raise VaultIOError(f"Failed to read vault file: {source}") from exc

    def write_raw(self, blob: bytes, path: Optional[Path] = None) -> None:
        """Atomically write an encrypted blob to ``path`` (default: the vault file)."""
        target = Path(path) if path is not None else self._path
        try:
            atomic.write_atomic(target, blob)
        except OSError as exc:
            raise VaultIOError(f"Failed to write vault file: {target}") from exc

    def stage_raw(self, blob: bytes) -> Path:
        """Write a blob to a temp file beside the vault; commit with atomic.commit()."""
        try:
            return atomic.stage(self._path, blob)
        except OSError as exc:
            raise VaultIOError(f"Failed to stage vault file: {self._path}") from exc

    # Encryption

    def encode(self, data: VaultData, key: bytes) -> bytes:
        """
        Serialize and encrypt the whole collection.

        The serialized plaintext is wiped after encryption. The
        intermediate str and bytes from json.dumps are immutable and
        are left to the garbage collector.

        Raises:
            SerializationError: If the records cannot be serialized
        """
        try:
            plaintext = bytearray(
                json.dumps(data.to_dict(), ensure_ascii=False).encode("utf-8")
            )
        except (TypeError, ValueError) as exc:
            raise SerializationError("Failed to serialize vault data") from exc

        with ZeroizeContext(plaintext):
            return self._cipher.encrypt(plaintext, key)

    def decode(self, blob: bytes, key: bytes) -> VaultData:
        """
        Decrypt and deserialize a vault blob.

        Raises:
            DecryptionError: Wrong key or tampered blob
            VaultMalformedError: Decrypts but does not deserialize
        """
        plaintext = bytearray(self._cipher.decrypt(blob, key))

        with ZeroizeContext(plaintext):
            try:
                document = json.loads(plaintext.decode("utf-8"))
                return VaultData.from_dict(document)
            except (UnicodeDecodeError, json.JSONDecodeError,
                    KeyError, TypeError, ValueError, AttributeError) as exc:
                raise VaultMalformedError("Vault data is malformed") from exc

    # Whole-vault operations

    def load(self, key: bytes) -> VaultData:
        """Read, decrypt and deserialize the vault file."""
        data = self.decode(self.read_raw(), key)
        self._log.debug("Vault loaded (%d identities)", len(data))
        return data

    def save(self, data: VaultData, key: bytes) -> None:
        """Serialize, encrypt with a fresh nonce, and atomically replace the vault file."""
        self.write_raw(self.encode(data, key))
        self._log.debug("Vault saved (%d identities)", len(data))
