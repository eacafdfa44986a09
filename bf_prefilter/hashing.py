"""Hash functions and index derivation for the prefilter.

Two independent 32-bit hashes are computed over the UTF-8 bytes of an item:

* **FNV** with the 32-bit offset basis and prime. Each step multiplies first
  and then xors the byte in; files produced by other implementations depend
  on this exact ordering.
* **MurmurHash3 x86_32** via ``mmh3``, seeded with the filter's murmur seed.

The two values are combined with Kirsch-Mitzenmacher double hashing, wrapped
to 32 bits before the final modulo reduction.
"""
from __future__ import annotations

from typing import List, Union

import mmh3

from .errors import InvalidParameterError


MASK32 = 0xFFFFFFFF
FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193


def _to_bytes(item: Union[str, bytes]) -> bytes:
    if isinstance(item, str):
        return item.encode("utf-8")
    return bytes(item)


def fnv1a(data: Union[str, bytes]) -> int:
    """Return the 32-bit FNV hash of ``data``."""
    value = FNV_OFFSET_BASIS
    for byte in _to_bytes(data):
        value = (value * FNV_PRIME) & MASK32
        value ^= byte
    return value


def murmur3_32(data: Union[str, bytes], seed: int) -> int:
    """Return the unsigned MurmurHash3 x86_32 hash of ``data``."""
    return mmh3.hash(_to_bytes(data), seed & MASK32, signed=False)


def derive_indices(item: Union[str, bytes], num_hashes: int, num_bits: int, seed: int) -> List[int]:
    """Return ``num_hashes`` bit positions in ``[0, num_bits)`` for ``item``.

    Positions may repeat; callers set or test every one of them.
    """
    if num_bits < 1:
        raise InvalidParameterError("num_bits must be positive")

    data = _to_bytes(item)
    h1 = fnv1a(data)
    h2 = murmur3_32(data, seed)
    return [((h1 + i * h2) & MASK32) % num_bits for i in range(num_hashes)]
