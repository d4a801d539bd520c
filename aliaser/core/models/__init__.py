"""
Vault record models.
"""

from aliaser.core.models.identity import (
    Identity,
    PersonalInfo,
    VaultData,
)

__all__ = ["Identity", "PersonalInfo", "VaultData"]
