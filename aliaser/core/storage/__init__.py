"""
Aliaser Storage Module
======================

On-disk persistence for the two vault files:
- vault_store.py: the encrypted record blob
- config_store.py: the unencrypted verification material
- atomic.py: temp-file + fsync + rename replacement
"""

from aliaser.core.storage.config_store import ConfigStore, VaultConfig
from aliaser.core.storage.vault_store import VaultStore

__all__ = ["ConfigStore", "VaultConfig", "VaultStore"]
