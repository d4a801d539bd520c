"""
Input Validation
================

Checks applied to identity records, to values that become vault keys
(service names) and to values that gate vault creation (master passwords).
"""

from __future__ import annotations

import dataclasses
import unicodedata
from typing import Any, Final

from aliaser.core.models.identity import Identity, PersonalInfo

MIN_MASTER_PASSWORD_LENGTH: Final[int] = 8
MAX_MASTER_PASSWORD_LENGTH: Final[int] = 4096
MAX_SERVICE_NAME_LENGTH: Final[int] = 256


class ValidationError(ValueError):
    """Raised when validation fails."""
    pass


def validate_string_safe(
    value: str,
    min_length: int = 0,
    max_length: int = 1000,
    allow_empty: bool = False,
    field_name: str = "value",
) -> str:
    """
    Check type, length bounds and NUL bytes of a string.

    Returns:
        The value, unchanged

    Raises:
        ValidationError: If any check fails
    """
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    if not value and not allow_empty:
        raise ValidationError(f"{field_name} cannot be empty")

    length = len(value)
    if length < min_length:
        raise ValidationError(f"{field_name} must be at least {min_length} characters")
    if length > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")

    if "\x00" in value:
        raise ValidationError(f"{field_name} contains invalid characters")
    return value


def validate_service_name(service: str) -> str:
    """
    Service names are case-sensitive vault keys.

    Any printable text is accepted; control characters are not, since
    the name is echoed back in listings.
    """
    validate_string_safe(service, max_length=MAX_SERVICE_NAME_LENGTH, field_name="Service name")
    if any(unicodedata.category(ch) == "Cc" for ch in service):
        raise ValidationError("Service name contains control characters")
    return service


def validate_master_password(password: str) -> str:
    """
    Only length is enforced. A forgotten master password cannot be
    recovered, so choosing a strong one is left to the user.
    """
    return validate_string_safe(
        password,
        min_length=MIN_MASTER_PASSWORD_LENGTH,
        max_length=MAX_MASTER_PASSWORD_LENGTH,
        field_name="Master password",
    )


def _require_text(value: Any, field_name: str, optional: bool = False) -> None:
    if value is None and optional:
        return
    if not isinstance(value, str):
        expected = "a string or None" if optional else "a string"
        raise ValidationError(f"{field_name} must be {expected}")


def validate_identity(identity: Identity) -> Identity:
    """
    Check that every field of ``identity`` has the type the vault stores.

    Raises:
        ValidationError: On a bad service name or a value of the wrong type
    """
    validate_service_name(identity.service)
    _require_text(identity.username, "username")
    _require_text(identity.password, "password")
    for name in ("email", "alias", "notes"):
        _require_text(getattr(identity, name), name, optional=True)

    info = identity.personal_info
    if info is not None:
        if not isinstance(info, PersonalInfo):
            raise ValidationError("personal_info must be a PersonalInfo or None")
        for f in dataclasses.fields(info):
            _require_text(getattr(info, f.name), f"personal_info.{f.name}", optional=True)

    if not isinstance(identity.custom_fields, dict):
        raise ValidationError("custom_fields must be a mapping")
    for key, value in identity.custom_fields.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise ValidationError("custom_fields must map strings to strings")
    return identity
