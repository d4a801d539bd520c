"""
Vault Config Store
==================

Persists the unencrypted verification material next to the vault:

    {
        "master_password_hash": "$argon2id$...",
        "salt": "<base64>",
        "format_version": "1",
        "kdf": {"time_cost": 3, "memory_cost": 65536, "parallelism": 4}
    }

Neither the hash nor the salt allows recovery of the encryption key.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from aliaser.core.config import KdfConfig
from aliaser.core.crypto.kdf import MIN_SALT_SIZE
from aliaser.core.errors import VaultIOError, VaultMalformedError
from aliaser.core.storage import atomic

CONFIG_FORMAT_VERSION: Final[str] = "1"
SUPPORTED_FORMAT_VERSIONS: Final[frozenset[str]] = frozenset({CONFIG_FORMAT_VERSION})


@dataclass(frozen=True, slots=True)
class VaultConfig:
    """
    Verification material for one vault.

    Note: hash and salt are never exposed in repr.
    """
    master_password_hash: str
    salt: bytes
    kdf: KdfConfig = field(default_factory=KdfConfig)
    format_version: str = CONFIG_FORMAT_VERSION

    def __repr__(self) -> str:
        return f"VaultConfig(format_version={self.format_version!r}, salt_len={len(self.salt)})"

    def to_json(self) -> bytes:
        document = {
            "master_password_hash": self.master_password_hash,
            "salt": base64.b64encode(self.salt).decode("ascii"),
            "format_version": self.format_version,
            "kdf": self.kdf.to_dict(),
        }
        return json.dumps(document, indent=2).encode("utf-8")

    @classmethod
    def from_json(cls, raw: bytes) -> VaultConfig:
        """
        Parse a config document.

        Raises:
            VaultMalformedError: If the document is not a valid config
        """
        try:
            document = json.loads(raw.decode("utf-8"))
            format_version = str(document["format_version"])
            config = cls(
                master_password_hash=str(document["master_password_hash"]),
                salt=base64.b64decode(document["salt"], validate=True),
                kdf=KdfConfig.from_dict(document["kdf"]),
                format_version=format_version,
            )
        except (UnicodeDecodeError, json.JSONDecodeError, binascii.Error,
                KeyError, TypeError, ValueError) as exc:
            raise VaultMalformedError("Vault config is malformed") from exc

        if format_version not in SUPPORTED_FORMAT_VERSIONS:
            raise VaultMalformedError(f"Unsupported vault config version: {format_version}")
        if len(config.salt) < MIN_SALT_SIZE:
            raise VaultMalformedError(f"Vault salt must be at least {MIN_SALT_SIZE} bytes")
        return config


class ConfigStore:
    """
    Reads and atomically writes the vault config file.

    Usage:
        store = ConfigStore(config_path)
        config = store.load()
        store.save(new_config)
    """

    __slots__ = ("_path", "_log")

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._log = logging.getLogger("aliaser.storage")

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> VaultConfig:
        """
        Load the config file.

        Raises:
            VaultIOError: If the file cannot be read
            VaultMalformedError: If it cannot be parsed
        """
        try:
            raw = self._path.read_bytes()
        except OSError as exc:
            raise VaultIOError(f"Failed to read vault config: {self._path}") from exc
        return VaultConfig.from_json(raw)

    def save(self, config: VaultConfig) -> None:
        """Atomically replace the config file."""
        try:
            atomic.write_atomic(self._path, config.to_json())
        except OSError as exc:
            raise VaultIOError(f"Failed to write vault config: {self._path}") from exc
        self._log.debug("Vault config written to %s", self._path)

    def stage(self, config: VaultConfig) -> Path:
        """Write the config to a temp file beside the target; commit with atomic.commit()."""
        try:
            return atomic.stage(self._path, config.to_json())
        except OSError as exc:
            raise VaultIOError(f"Failed to stage vault config: {self._path}") from exc
