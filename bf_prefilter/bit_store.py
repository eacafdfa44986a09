"""Packed bit buffer backing a prefilter."""
from __future__ import annotations

from typing import Optional, Union


class BitStore:
    """Fixed-size bitset stored LSB-first in a ``bytearray``.

    Bit ``i`` lives in byte ``i >> 3`` under mask ``1 << (i & 7)``. The buffer
    carries no header, so its bytes are exactly what gets persisted.
    """

    __slots__ = ("_bit_array",)

    def __init__(self, num_bits: int = 0, *, data: Optional[Union[bytes, bytearray]] = None) -> None:
        if data is not None:
            self._bit_array = bytearray(data)
        else:
            self._bit_array = bytearray((num_bits + 7) // 8)

    def set_bit(self, index: int) -> None:
        """Set bit ``index``; indices outside the buffer are ignored."""
        byte_index = index >> 3
        if 0 <= byte_index < len(self._bit_array):
            self._bit_array[byte_index] |= 1 << (index & 7)

    def is_bit_set(self, index: int) -> bool:
        """Return True if bit ``index`` is set; False if unset or out of range."""
        byte_index = index >> 3
        if not 0 <= byte_index < len(self._bit_array):
            return False
        return bool(self._bit_array[byte_index] & (1 << (index & 7)))

    def count_set_bits(self) -> int:
        return sum(byte.bit_count() for byte in self._bit_array)

    @property
    def data(self) -> bytes:
        """Snapshot of the raw buffer."""
        return bytes(self._bit_array)

    def __len__(self) -> int:
        return len(self._bit_array)
