"""
Key Buffer
==========

Holds the derived vault key for the lifetime of an unlocked session.

Security Properties:
- Wiped explicitly on close, on context exit and on garbage collection
- Pages locked against swapping where the OS allows it
- repr never shows contents

Limitations:
- .data hands out an immutable copy that cannot be wiped
- Best-effort only under CPython's memory model
"""

from __future__ import annotations

import ctypes
import ctypes.util
import platform
from typing import Final

from aliaser.core.memory.zeroization import secure_zero

IS_WINDOWS: Final[bool] = platform.system() == "Windows"

MAX_BUFFER_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB


def _page_lock(address: int, size: int, lock: bool) -> bool:
    """mlock/munlock (VirtualLock/VirtualUnlock on Windows); False if unavailable."""
    try:
        if IS_WINDOWS:
            kernel32 = ctypes.windll.kernel32
            call = kernel32.VirtualLock if lock else kernel32.VirtualUnlock
            return bool(call(ctypes.c_void_p(address), ctypes.c_size_t(size)))

        libc_name = ctypes.util.find_library("c")
        if libc_name is None:
            return False
        libc = ctypes.CDLL(libc_name, use_errno=True)
        call = libc.mlock if lock else libc.munlock
        return call(ctypes.c_void_p(address), ctypes.c_size_t(size)) == 0
    except (OSError, AttributeError):
        # No libc or kernel32 here; the key still works unlocked
        return False


class SecureBuffer:
    """
    Fixed-size secret bytes with explicit zeroization.

    Usage:
        key = SecureBuffer.from_bytes(derive_key(password, salt, kdf))
        try:
            store.load(key.data)
        finally:
            key.wipe()
    """

    __slots__ = ("_buffer", "_size", "_wiped", "_locked", "__weakref__")

    def __init__(self, size: int, lock_memory: bool = True) -> None:
        if size <= 0:
            raise ValueError("Buffer size must be positive")
        if size > MAX_BUFFER_SIZE:
            raise ValueError(f"Buffer too large (max {MAX_BUFFER_SIZE})")

        self._size = size
        self._buffer = bytearray(size)
        self._wiped = False
        self._locked = _page_lock(self._address(), size, True) if lock_memory else False

    @classmethod
    def from_bytes(cls, data: bytes | bytearray, lock_memory: bool = True) -> SecureBuffer:
        """Copy ``data`` in; a bytearray source is wiped afterwards."""
        buf = cls(size=len(data), lock_memory=lock_memory)
        buf._buffer[:] = data
        if isinstance(data, bytearray):
            secure_zero(data)
        return buf

    def _address(self) -> int:
        return ctypes.addressof((ctypes.c_char * self._size).from_buffer(self._buffer))

    @property
    def data(self) -> bytes:
        """
        A copy of the contents. Raises ValueError once wiped.

        The copy is immutable and is not wiped with the buffer, so
        callers pass it straight to the cipher and do not keep it.
        """
        if self._wiped:
            raise ValueError("Buffer has been wiped")
        return bytes(self._buffer)

    @property
    def is_wiped(self) -> bool:
        return self._wiped

    def wipe(self) -> None:
        """Overwrite the contents and release the page lock. Safe to call twice."""
        if self._wiped:
            return

        secure_zero(self._buffer)
        if self._locked:
            _page_lock(self._address(), self._size, False)
            self._locked = False
        self._wiped = True

    def __enter__(self) -> SecureBuffer:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.wipe()

    def __del__(self) -> None:
        try:
            self.wipe()
        except Exception:
            pass  # Interpreter shutdown; ctypes may already be gone

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        if self._wiped:
            return "SecureBuffer(WIPED)"
        return f"SecureBuffer(size={self._size}, locked={self._locked})"
