"""
Aliaser Vault Module
====================

The operation surface of the engine:
- engine.py: Vault (init, unlock)
- session.py: VaultSession (CRUD, export, import, change_master)
- repository.py: IdentityRepository (CRUD over decrypted records)
"""

from aliaser.core.vault.engine import Vault
from aliaser.core.vault.repository import IdentityRepository
from aliaser.core.vault.session import VaultSession

__all__ = ["IdentityRepository", "Vault", "VaultSession"]
