"""
Unlocked Vault Session
======================

Holds the derived key for the duration of one command and exposes
the operations that need it: identity CRUD, export, import and
master-password rotation.

Security Properties:
- The key lives only in a SecureBuffer owned by the session
- close() (and context-manager exit, on any path) wipes it
- A closed session refuses every operation
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from aliaser.core.auth.argon2_auth import Argon2Hasher
from aliaser.core.crypto.kdf import derive_key, generate_salt
from aliaser.core.errors import (
    InvalidMasterPasswordError,
    SessionClosedError,
    VaultIOError,
)
from aliaser.core.memory.secure_memory import SecureBuffer
from aliaser.core.models.identity import Identity, VaultData
from aliaser.core.storage import atomic
from aliaser.core.storage.config_store import ConfigStore, VaultConfig
from aliaser.core.storage.vault_store import VaultStore
from aliaser.core.vault.repository import IdentityRepository
from aliaser.utils.validators import validate_master_password


class VaultSession:
    """
    An unlocked vault.

    Obtained from Vault.unlock() or Vault.init(); never constructed
    by collaborators directly.

    Usage:
        with vault.unlock(password) as session:
            session.add(Identity(service="GitHub", username="alice", password="p@ss"))
            print(session.list())
        # key is wiped here
    """

    __slots__ = (
        "_key", "_config", "_vault_store", "_config_store",
        "_hasher", "_repository", "_closed", "_log",
    )

    def __init__(
        self,
        key: SecureBuffer,
        config: VaultConfig,
        data: VaultData,
        vault_store: VaultStore,
        config_store: ConfigStore,
        hasher: Argon2Hasher,
    ) -> None:
        self._key = key
        self._config = config
        self._vault_store = vault_store
        self._config_store = config_store
        self._hasher = hasher
        self._closed = False
        self._repository = IdentityRepository(data, vault_store, self._current_key)
        self._log = logging.getLogger("aliaser.vault")

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Vault session is closed")

    def _current_key(self) -> bytes:
        self._ensure_open()
        return self._key.data

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def config(self) -> VaultConfig:
        """The config the current key was derived from."""
        return self._config

    @property
    def repository(self) -> IdentityRepository:
        self._ensure_open()
        return self._repository

    # Identity operations

    def add(self, identity: Identity) -> Identity:
        return self.repository.add(identity)

    def get(self, service: str) -> Identity:
        return self.repository.get(service)

    def list(self) -> list[str]:
        return self.repository.list()

    def update(self, service: str, /, **fields: Any) -> Identity:
        return self.repository.update(service, **fields)

    def delete(self, service: str) -> None:
        self.repository.delete(service)

    # Backup

    def export(self, path: Path | str) -> None:
        """
        Copy the encrypted vault file verbatim to ``path``.

        The copy is not re-encrypted; it opens only with the same
        master password and salt.
        """
        self._ensure_open()
        target = Path(path)
        if target.resolve() == self._vault_store.path.resolve():
            raise ValueError("Export target is the live vault file")

        self._vault_store.write_raw(self._vault_store.read_raw(), target)
        self._log.info("Vault exported to %s", target)

    def import_vault(self, path: Path | str) -> None:
        """
        Replace the live vault with a backup made under the current config.

        The backup must decrypt and deserialize under this session's key
        before anything on disk changes.

        Raises:
            DecryptionError: The backup was made under another password/salt
            VaultMalformedError: The backup decrypts but is not a vault
        """
        self._ensure_open()
        source = Path(path)
        blob = self._vault_store.read_raw(source)
        data = self._vault_store.decode(blob, self._key.data)

        self._vault_store.write_raw(blob)
        self._repository.replace_data(data)
        self._log.info("Vault imported from %s (%d identities)", source, len(data))

    # Master password

    def change_master(self, old_password: str, new_password: str) -> None:
        """
        Re-encrypt the vault under a new master password and salt.

        The new vault file is renamed into place before the new config.
        A crash between the two renames leaves the new vault with the
        old config: unlocking with the old password then fails to
        decrypt rather than reporting a password mismatch.

        Raises:
            InvalidMasterPasswordError: ``old_password`` does not match
            ValidationError: ``new_password`` is too short
            VaultIOError: Staging or renaming failed
        """
        self._ensure_open()
        validate_master_password(new_password)

        current = self._config_store.load()
        if not self._hasher.verify(old_password, current.master_password_hash):
            self._log.warning("Master password change rejected: invalid password")
            raise InvalidMasterPasswordError("Invalid master password")

        with SecureBuffer.from_bytes(derive_key(old_password, current.salt, current.kdf)) as old_key:
            data = self._vault_store.load(old_key.data)

        new_salt = generate_salt(current.kdf.salt_length)
        new_key = SecureBuffer.from_bytes(derive_key(new_password, new_salt, current.kdf))
        try:
            new_config = VaultConfig(
                master_password_hash=self._hasher.hash(new_password),
                salt=new_salt,
                kdf=current.kdf,
            )
            self._swap_files(self._vault_store.encode(data, new_key.data), new_config)
        except BaseException:
            new_key.wipe()
            raise

        self._key.wipe()
        self._key = new_key
        self._config = new_config
        self._repository.replace_data(data)
        self._log.info("Master password changed; vault re-encrypted")

    def _swap_files(self, vault_blob: bytes, new_config: VaultConfig) -> None:
        vault_tmp = self._vault_store.stage_raw(vault_blob)
        try:
            config_tmp = self._config_store.stage(new_config)
        except BaseException:
            atomic.discard(vault_tmp)
            raise

        try:
            atomic.commit(vault_tmp, self._vault_store.path)
        except OSError as exc:
            atomic.discard(vault_tmp)
            atomic.discard(config_tmp)
            raise VaultIOError("Failed to replace vault file; nothing changed") from exc

        try:
            atomic.commit(config_tmp, self._config_store.path)
        except OSError as exc:
            atomic.discard(config_tmp)
            self._log.error("Vault re-encrypted but config not replaced")
            raise VaultIOError(
                "Vault file was re-encrypted but the config could not be replaced"
            ) from exc

    # Lifecycle

    def close(self) -> None:
        """Wipe the key and refuse further operations. Safe to call twice."""
        if self._closed:
            return
        self._key.wipe()
        self._closed = True
        self._log.debug("Vault session closed")

    def __enter__(self) -> VaultSession:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - always wipe the key."""
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"VaultSession({state}, vault={self._vault_store.path})"
