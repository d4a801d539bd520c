"""
Vault Error Taxonomy
====================

Typed failures raised by the vault engine.

Every error aborts the current operation and leaves the on-disk
vault in its last atomically-committed state. Nothing is retried.

Security Notes:
- Messages never contain passwords, keys or record content
- Wrong key and tampering are deliberately the same error
"""

from __future__ import annotations


class VaultError(Exception):
    """Base exception for all vault engine errors."""
    pass


class VaultNotInitializedError(VaultError):
    """Raised when the vault or config file is missing."""
    pass


class VaultAlreadyInitializedError(VaultError):
    """Raised when init is attempted over an existing vault."""
    pass


class InvalidMasterPasswordError(VaultError):
    """Raised when the master password does not match the stored hash."""
    pass


class DecryptionError(VaultError):
    """
    Raised when the vault blob fails authentication.

    This is a generic error that doesn't reveal the cause
    (wrong key and tampered ciphertext are indistinguishable).
    """
    pass


# Name used by the storage contract for the same failure
VaultCorruptOrWrongKey = DecryptionError


class VaultMalformedError(VaultError):
    """Raised when a file decrypts (or reads) but cannot be deserialized."""
    pass


class SerializationError(VaultError):
    """Raised when vault data cannot be serialized for writing."""
    pass


class IdentityExistsError(VaultError):
    """Raised when adding an identity whose service already exists."""
    def __init__(self, service: str):
        self.service = service
        super().__init__(f"Identity for service '{service}' already exists")


class IdentityNotFoundError(VaultError):
    """Raised when an identity is not found."""
    def __init__(self, service: str):
        self.service = service
        super().__init__(f"Identity for service '{service}' not found")


class VaultIOError(VaultError):
    """Raised when reading, writing or renaming a vault file fails."""
    pass


class SessionClosedError(VaultError):
    """Raised when a closed (locked) session is used."""
    pass
