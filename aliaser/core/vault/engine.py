"""
Vault Engine
============

Entry point for collaborators (CLI, scripts): creates a vault and
unlocks it into a VaultSession.

Unlock flow:
1. Load hash, salt and KDF parameters from the config file
2. Verify the master password against the hash
3. Derive the key from password + salt (Argon2id)
4. Decrypt and deserialize the vault file
5. Re-hash the master password if the hasher settings changed
6. Hand key and records to a new VaultSession

Limitations:
- No inter-process locking; two concurrent writers race and the
  last rename wins (each file is still always complete)
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from aliaser.core.auth.argon2_auth import Argon2Hasher
from aliaser.core.config import AliaserConfig, PathConfig
from aliaser.core.crypto.aes_gcm import CipherEngine
from aliaser.core.crypto.kdf import derive_key, generate_salt
from aliaser.core.errors import (
    InvalidMasterPasswordError,
    VaultAlreadyInitializedError,
    VaultIOError,
    VaultNotInitializedError,
)
from aliaser.core.memory.secure_memory import SecureBuffer
from aliaser.core.models.identity import VaultData
from aliaser.core.storage.config_store import ConfigStore, VaultConfig
from aliaser.core.storage.vault_store import VaultStore
from aliaser.core.vault.session import VaultSession
from aliaser.utils.validators import validate_master_password


class Vault:
    """
    A vault on disk: an encrypted vault file plus its config file.

    Usage:
        vault = Vault()
        if not vault.is_initialized():
            vault.init(password).close()

        with vault.unlock(password) as session:
            session.list()
    """

    __slots__ = ("_config", "_vault_store", "_config_store", "_hasher", "_log")

    def __init__(
        self,
        config: Optional[AliaserConfig] = None,
        cipher: Optional[CipherEngine] = None,
    ) -> None:
        self._config = config or AliaserConfig.load()
        paths = self._config.paths
        self._vault_store = VaultStore(paths.vault_path, cipher)
        self._config_store = ConfigStore(paths.config_path)
        self._hasher = Argon2Hasher(self._config.hasher)
        self._log = logging.getLogger("aliaser.vault")

    @property
    def paths(self) -> PathConfig:
        return self._config.paths

    def is_initialized(self) -> bool:
        """Both the vault file and the config file exist."""
        return self._vault_store.exists() and self._config_store.exists()

    def init(self, password: str) -> VaultSession:
        """
        Create a new empty vault protected by ``password``.

        The empty vault is written first and the config last, so a
        config file only ever describes a vault that exists.

        Returns:
            An open session on the new vault

        Raises:
            VaultAlreadyInitializedError: If either file already exists
            ValidationError: If the password is too short
        """
        if self._vault_store.exists() or self._config_store.exists():
            raise VaultAlreadyInitializedError("Vault already initialized")
        validate_master_password(password)

        self._config.ensure_directories()

        kdf = self._config.kdf
        salt = generate_salt(kdf.salt_length)
        vault_config = VaultConfig(
            master_password_hash=self._hasher.hash(password),
            salt=salt,
            kdf=kdf,
        )

        key = SecureBuffer.from_bytes(derive_key(password, salt, kdf))
        data = VaultData()
        vault_written = False
        try:
            self._vault_store.save(data, key.data)
            vault_written = True
            self._config_store.save(vault_config)
        except BaseException:
            key.wipe()
            if vault_written:
                self._remove_orphan_vault()
            raise

        self._log.info("Vault initialized at %s", self._vault_store.path)
        return self._open_session(key, vault_config, data)

    def unlock(self, password: str) -> VaultSession:
        """
        Verify ``password`` and decrypt the vault into a session.

        Raises:
            VaultNotInitializedError: If either file is missing
            InvalidMasterPasswordError: If the password does not match
            DecryptionError: If the vault does not open with the derived key
            VaultMalformedError: If either file cannot be parsed
        """
        if not self.is_initialized():
            raise VaultNotInitializedError("Vault not initialized. Run 'init' first.")

        vault_config = self._config_store.load()
        if not self._hasher.verify(password, vault_config.master_password_hash):
            self._log.warning("Unlock rejected: invalid master password")
            raise InvalidMasterPasswordError("Invalid master password")

        key = SecureBuffer.from_bytes(
            derive_key(password, vault_config.salt, vault_config.kdf)
        )
        try:
            data = self._vault_store.load(key.data)
        except BaseException:
            key.wipe()
            raise

        if self._hasher.needs_rehash(vault_config.master_password_hash):
            vault_config = self._rehash(password, vault_config)

        self._log.info("Vault unlocked (%d identities)", len(data))
        return self._open_session(key, vault_config, data)

    def _rehash(self, password: str, vault_config: VaultConfig) -> VaultConfig:
        """Re-hash the master password with the current hasher settings."""
        upgraded = dataclasses.replace(
            vault_config, master_password_hash=self._hasher.hash(password)
        )
        try:
            self._config_store.save(upgraded)
        except VaultIOError as exc:
            # The old hash still verifies; try again on the next unlock
            self._log.warning("Could not upgrade master password hash: %s", exc)
            return vault_config
        self._log.info("Master password hash upgraded to current parameters")
        return upgraded

    def _remove_orphan_vault(self) -> None:
        """Delete a vault file written by an init whose config write failed."""
        try:
            self._vault_store.path.unlink(missing_ok=True)
        except OSError as exc:
            self._log.error("Could not remove %s after failed init: %s", self._vault_store.path, exc)

    def _open_session(self, key: SecureBuffer, vault_config: VaultConfig, data: VaultData) -> VaultSession:
        return VaultSession(
            key=key,
            config=vault_config,
            data=data,
            vault_store=self._vault_store,
            config_store=self._config_store,
            hasher=self._hasher,
        )
