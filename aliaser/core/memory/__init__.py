"""
Aliaser Memory Security Module
==============================

Provides secure memory handling primitives for key material
and decrypted vault plaintext.

Components:
- secure_memory.py: Wipeable, optionally mlock'ed key buffer
- zeroization.py: Memory wiping utilities

WARNING:
- Python's memory model doesn't guarantee secure erasure
- These are best-effort mitigations
"""

from aliaser.core.memory.secure_memory import SecureBuffer
from aliaser.core.memory.zeroization import ZeroizeContext, secure_zero

__all__ = [
    "SecureBuffer",
    "ZeroizeContext",
    "secure_zero",
]
