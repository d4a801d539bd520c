"""
Identity Repository
===================

CRUD over an already-decrypted VaultData.

Every mutation builds a new collection, persists it through
VaultStore.save (atomic rename), and only then replaces the
in-memory collection. A failed save leaves memory and disk agreeing
on the previous state.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from typing import Any, Callable

from aliaser.core.errors import IdentityExistsError, IdentityNotFoundError
from aliaser.core.models.identity import (
    UPDATABLE_FIELDS,
    Identity,
    PersonalInfo,
    VaultData,
    utc_now,
)
from aliaser.core.storage.vault_store import VaultStore
from aliaser.utils.validators import validate_identity


class IdentityRepository:
    """
    Identity CRUD bound to one unlocked vault.

    Usage:
        repo = IdentityRepository(data, store, key_provider)
        repo.add(Identity(service="GitHub", username="alice", password="..."))
        repo.update("GitHub", notes="2FA enabled")
        repo.delete("GitHub")

    ``key_provider`` returns the current session key on each save,
    so the repository never keeps its own copy.
    """

    __slots__ = ("_data", "_store", "_key_provider", "_log")

    def __init__(
        self,
        data: VaultData,
        store: VaultStore,
        key_provider: Callable[[], bytes],
    ) -> None:
        self._data = data
        self._store = store
        self._key_provider = key_provider
        self._log = logging.getLogger("aliaser.vault")

    @property
    def data(self) -> VaultData:
        return self._data

    def replace_data(self, data: VaultData) -> None:
        """Swap in a collection that is already persisted (import, rotation)."""
        self._data = data

    def _commit(self, data: VaultData) -> None:
        self._store.save(data, self._key_provider())
        self._data = data

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, service: object) -> bool:
        return service in self._data

    def add(self, identity: Identity) -> Identity:
        """
        Add a new identity and persist the vault.

        Returns:
            The stored identity, with created_at/updated_at set to now

        Raises:
            IdentityExistsError: If the service is already present
        """
        validate_identity(identity)
        if identity.service in self._data:
            raise IdentityExistsError(identity.service)

        now = utc_now()
        stored = dataclasses.replace(
            identity,
            custom_fields=dict(identity.custom_fields),
            created_at=now,
            updated_at=now,
        )
        self._commit(self._data.with_identity(stored))
        self._log.info("Identity added (%d stored)", len(self._data))
        return stored

    def get(self, service: str) -> Identity:
        """
        Get an identity by service name.

        Raises:
            IdentityNotFoundError: If absent
        """
        identity = self._data.get(service)
        if identity is None:
            raise IdentityNotFoundError(service)
        return identity

    def list(self) -> list[str]:
        """Service names in insertion order."""
        return self._data.services()

    def update(self, service: str, /, **fields: Any) -> Identity:
        """
        Change only the given fields of an identity and persist the vault.

        Fields not passed are left as they are. Passing ``None`` for an
        optional field clears it.

        Raises:
            IdentityNotFoundError: If absent
            ValueError: On unknown or non-updatable field names
        """
        current = self.get(service)

        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        if "personal_info" in fields and isinstance(fields["personal_info"], dict):
            fields["personal_info"] = PersonalInfo.from_dict(fields["personal_info"])
        if "custom_fields" in fields:
            custom = fields["custom_fields"]
            if custom is None:
                fields["custom_fields"] = {}
            elif isinstance(custom, Mapping):
                fields["custom_fields"] = dict(custom)

        updated = validate_identity(dataclasses.replace(current, **fields, updated_at=utc_now()))
        self._commit(self._data.with_identity(updated))
        self._log.info("Identity updated (%d field(s))", len(fields))
        return updated

    def delete(self, service: str) -> None:
        """
        Remove an identity and persist the vault.

        Raises:
            IdentityNotFoundError: If absent
        """
        if service not in self._data:
            raise IdentityNotFoundError(service)
        self._commit(self._data.without(service))
        self._log.info("Identity deleted (%d stored)", len(self._data))
