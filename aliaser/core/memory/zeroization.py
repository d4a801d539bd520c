"""
Plaintext Zeroization
=====================

Wipes mutable buffers that held serialized vault plaintext once the
buffer has been encrypted or parsed.

The JSON form of a vault carries every stored password, so the
store keeps it in a bytearray and wipes it on scope exit, normal
or exceptional.
"""

from __future__ import annotations

import ctypes
from contextlib import contextmanager
from typing import Final, Iterator

# Fill bytes written in order; the last pass leaves zeros
WIPE_PATTERNS: Final[tuple[int, ...]] = (0x00, 0xFF, 0x00)


def secure_zero(data: bytearray) -> None:
    """
    Overwrite ``data`` in place.

    Note: best-effort only; immutable copies made elsewhere
    (bytes(), str decode) are out of reach.
    """
    size = len(data)
    if size == 0:
        return

    address = ctypes.addressof((ctypes.c_char * size).from_buffer(data))
    for pattern in WIPE_PATTERNS:
        ctypes.memset(address, pattern, size)


@contextmanager
def ZeroizeContext(*buffers: bytearray) -> Iterator[None]:
    """
    Wipe ``buffers`` when the block exits.

    Usage:
        plaintext = bytearray(json.dumps(doc).encode())
        with ZeroizeContext(plaintext):
            blob = cipher.encrypt(plaintext, key)
    """
    try:
        yield
    finally:
        for buf in buffers:
            secure_zero(buf)
