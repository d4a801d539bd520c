"""
Identity Records
================

The decrypted contents of a vault: credential records keyed by
service name, and their JSON-ready dict form.

Note: password is never exposed in repr or str.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Final, Iterator, Optional

VAULT_DATA_FORMAT: Final[str] = "1"

# Fields an update may touch; service and timestamps are managed by the repository
UPDATABLE_FIELDS: Final[frozenset[str]] = frozenset({
    "username", "password", "email", "alias",
    "personal_info", "custom_fields", "notes",
})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _text(value: Any, name: str, optional: bool = False) -> Optional[str]:
    if value is None and optional:
        return None
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string")
    return value


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True, slots=True)
class PersonalInfo:
    """Optional personal details attached to an identity."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    birthdate: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None

    def __repr__(self) -> str:
        filled = [f.name for f in dataclasses.fields(self) if getattr(self, f.name) is not None]
        return f"PersonalInfo(fields={filled})"

    def to_dict(self) -> dict[str, Optional[str]]:
        return {f.name: getattr(self, f.name) for f in dataclasses.fields(self)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PersonalInfo:
        known = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass(frozen=True, slots=True)
class Identity:
    """
    One credential record, unique by ``service`` within a vault.

    Timestamps are UTC and are (re)stamped by the repository on
    add and update.
    """
    service: str
    username: str
    password: str
    email: Optional[str] = None
    alias: Optional[str] = None
    personal_info: Optional[PersonalInfo] = None
    custom_fields: dict[str, str] = field(default_factory=dict)
    notes: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __repr__(self) -> str:
        """Safe representation without password."""
        return (
            f"Identity(service={self.service!r}, username={self.username!r}, "
            f"updated_at={self.updated_at.isoformat()})"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "service": self.service,
            "username": self.username,
            "password": self.password,
            "email": self.email,
            "alias": self.alias,
            "personal_info": self.personal_info.to_dict() if self.personal_info else None,
            "custom_fields": dict(self.custom_fields),
            "notes": self.notes,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Identity:
        """
        Rebuild an identity from its dict form.

        Raises:
            KeyError, TypeError, ValueError: If the record is malformed
        """
        personal_info = data.get("personal_info")
        if personal_info is not None:
            if not isinstance(personal_info, dict):
                raise TypeError("personal_info must be a mapping")
            personal_info = PersonalInfo.from_dict(personal_info)
            for f in dataclasses.fields(personal_info):
                _text(getattr(personal_info, f.name), f.name, optional=True)

        custom_fields = data.get("custom_fields") or {}
        if not isinstance(custom_fields, dict):
            raise TypeError("custom_fields must be a mapping")
        for key, value in custom_fields.items():
            _text(key, "custom field name")
            _text(value, f"custom field {key!r}")

        return cls(
            service=_text(data["service"], "service"),
            username=_text(data["username"], "username"),
            password=_text(data["password"], "password"),
            email=_text(data.get("email"), "email", optional=True),
            alias=_text(data.get("alias"), "alias", optional=True),
            personal_info=personal_info,
            custom_fields=dict(custom_fields),
            notes=_text(data.get("notes"), "notes", optional=True),
            created_at=_parse_timestamp(data["created_at"]),
            updated_at=_parse_timestamp(data["updated_at"]),
        )


class VaultData:
    """
    The full record collection: service -> Identity, in insertion order.

    This is the sole unit of encryption; it is always serialized and
    encrypted as a whole.
    """

    __slots__ = ("_identities",)

    def __init__(self, identities: Optional[dict[str, Identity]] = None) -> None:
        self._identities: dict[str, Identity] = dict(identities or {})

    def __contains__(self, service: object) -> bool:
        return service in self._identities

    def __len__(self) -> int:
        return len(self._identities)

    def __iter__(self) -> Iterator[Identity]:
        return iter(self._identities.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VaultData):
            return NotImplemented
        return self._identities == other._identities

    def __repr__(self) -> str:
        return f"VaultData(identities={len(self._identities)})"

    def get(self, service: str) -> Optional[Identity]:
        return self._identities.get(service)

    def services(self) -> list[str]:
        return list(self._identities)

    def with_identity(self, identity: Identity) -> VaultData:
        """Copy with ``identity`` inserted, or replaced in place if its service exists."""
        identities = dict(self._identities)
        identities[identity.service] = identity
        return VaultData(identities)

    def without(self, service: str) -> VaultData:
        identities = dict(self._identities)
        del identities[service]
        return VaultData(identities)

    def to_dict(self) -> dict[str, Any]:
        return {
            "format_version": VAULT_DATA_FORMAT,
            "identities": {
                service: identity.to_dict()
                for service, identity in self._identities.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VaultData:
        """
        Rebuild the collection from its dict form.

        Raises:
            KeyError, TypeError, ValueError: If the document is malformed
        """
        if not isinstance(data, dict):
            raise TypeError("Vault document must be a mapping")
        records = data["identities"]
        if not isinstance(records, dict):
            raise TypeError("identities must be a mapping")

        identities: dict[str, Identity] = {}
        for service, record in records.items():
            identity = Identity.from_dict(record)
            if identity.service != service:
                raise ValueError(f"Record key does not match its service: {service!r}")
            identities[service] = identity
        return cls(identities)
